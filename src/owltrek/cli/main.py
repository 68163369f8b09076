"""
OwlTrek CLI - Main Application

This is the main entry point for the OwlTrek command-line interface.
"""

import logging

import typer
from click import Context
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from typer.core import TyperGroup

from owltrek.cli.commands import location, nights


class SortedCommandsGroup(TyperGroup):
    """Custom Typer group that sorts commands alphabetically within each help panel."""

    def list_commands(self, ctx: Context) -> list[str]:
        """Return commands sorted alphabetically."""
        commands = super().list_commands(ctx)
        return sorted(commands)


# Create main app
app = typer.Typer(
    name="owltrek",
    help="Find good nights for stargazing and night hiking",
    add_completion=True,
    rich_markup_mode="rich",
    cls=SortedCommandsGroup,
)

# Console for rich output
console = Console()

# Global state for CLI
state: dict[str, bool] = {
    "verbose": False,
}


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """
    OwlTrek Night Forecasts

    Dark skies for stargazing, bright moons for night hikes.

    [bold green]Examples:[/bold green]

        owltrek location set --lat 33.1596 --lon -117.0680
        owltrek nights forecast
        owltrek nights calendar --days 30

    [bold blue]Environment Variables:[/bold blue]

        OWLTREK_LATITUDE        - Forecast latitude
        OWLTREK_LONGITUDE       - Forecast longitude
        OWLTREK_TIMEZONE        - Forecast timezone
        OWLTREK_WEATHER_POLICY  - gated or optimistic
        OWLTREK_CONFIG_DIR      - Directory for the saved location
        OWLTREK_SKYFIELD_DIR    - Directory for Skyfield ephemeris files
    """
    state["verbose"] = verbose

    load_dotenv()

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )

    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")


@app.command(rich_help_panel="Utilities")
def version() -> None:
    """Show the CLI version."""
    from owltrek.cli import __version__

    console.print(f"[bold]OwlTrek[/bold] version [cyan]{__version__}[/cyan]")


# Register command groups organized by category

# Forecasts
app.add_typer(
    nights.app,
    name="nights",
    help="Night forecasts and moon calendar",
    rich_help_panel="Forecasts",
)

# Configuration
app.add_typer(
    location.app,
    name="location",
    help="Observer location commands",
    rich_help_panel="Configuration",
)


if __name__ == "__main__":
    app()
