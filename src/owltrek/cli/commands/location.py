"""
Location Commands

Commands for managing the saved observer location.
"""

import typer
from click import Context
from rich.table import Table
from typer.core import TyperGroup

from owltrek.api.core.exceptions import OwlTrekError
from owltrek.api.location.observer import (
    clear_observer_location,
    get_config_path,
    get_observer_location,
    make_location,
    set_observer_location,
)
from owltrek.cli.utils.output import console, format_coordinates, print_error, print_info, print_json, print_success


class SortedCommandsGroup(TyperGroup):
    """Custom Typer group that sorts commands alphabetically within each help panel."""

    def list_commands(self, ctx: Context) -> list[str]:
        """Return commands sorted alphabetically."""
        commands = super().list_commands(ctx)
        return sorted(commands)


app = typer.Typer(help="Observer location commands", cls=SortedCommandsGroup)


@app.command("set")
def set_location(
    latitude: float = typer.Option(..., "--lat", help="Latitude in degrees (-90 to +90, North is positive)"),
    longitude: float = typer.Option(..., "--lon", help="Longitude in degrees (-180 to +180, East is positive)"),
    timezone: str | None = typer.Option(None, "--tz", help="IANA timezone (looked up from coordinates if omitted)"),
    name: str | None = typer.Option(None, "--name", help="Optional location name"),
) -> None:
    """
    Save the observer location used by the night forecasts.

    Example:
        # San Marcos, California
        owltrek location set --lat 33.1596 --lon -117.0680 --name "San Marcos"

        # Atacama Desert, explicit timezone
        owltrek location set --lat -24.6272 --lon -70.4042 --tz America/Santiago
    """
    try:
        location = make_location(latitude, longitude, timezone=timezone, name=name)
        set_observer_location(location, save=True)
    except OwlTrekError as e:
        print_error(f"Failed to set location: {e}")
        raise typer.Exit(code=1) from e

    print_success(f"Location set to {location.display_name} ({format_coordinates(latitude, longitude)})")
    print_info(f"Timezone: {location.timezone}")


@app.command("show")
def show_location(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Show the observer location used by the night forecasts.

    Example:
        owltrek location show
        owltrek location show --json
    """
    location = get_observer_location()
    config_path = get_config_path()

    if json_output:
        print_json(
            {
                "name": location.name,
                "latitude": location.latitude,
                "longitude": location.longitude,
                "timezone": location.timezone,
                "config_file": str(config_path),
                "config_exists": config_path.exists(),
            }
        )
        return

    table = Table(title="Observer Location", show_header=True, header_style="bold magenta")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Name", location.name or "Unnamed")
    table.add_row("Coordinates", format_coordinates(location.latitude, location.longitude))
    table.add_row("Timezone", location.timezone)
    table.add_row("Config file", str(config_path) if config_path.exists() else "[dim]not saved (default)[/dim]")

    console.print(table)


@app.command("clear")
def clear_location() -> None:
    """
    Forget the saved observer location and go back to the default.

    Example:
        owltrek location clear
    """
    clear_observer_location(delete_config=True)
    print_success("Saved location cleared")
