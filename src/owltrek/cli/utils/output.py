"""
CLI Output Utilities

Rich console formatting utilities for CLI output.
"""

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from owltrek.api.core.enums import NightCategory
from owltrek.api.core.utils import format_date_in_timezone, format_time_in_timezone
from owltrek.api.observation.night_planner import NightResult


console = Console()

# Rich handles unicode fallbacks internally, but the info icon is picked explicitly
_use_unicode = console.is_terminal and not console.legacy_windows

_CATEGORY_STYLES = {
    NightCategory.STARGAZING: "[bold blue]Stargazing[/bold blue]",
    NightCategory.HIKING: "[bold yellow]Night hike[/bold yellow]",
    NightCategory.NONE: "[dim]-[/dim]",
}


def print_success(message: str) -> None:
    """Print success message in green."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print error message in red."""
    console.print(f"[red]✗[/red] {message}", style="red")


def print_warning(message: str) -> None:
    """Print warning message in yellow."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    """Print info message in blue."""
    info_icon = "ℹ" if _use_unicode else "i"
    console.print(f"[blue]{info_icon}[/blue] {message}")


def print_json(data: dict[str, Any] | list[Any]) -> None:
    """Print data as JSON."""
    console.print_json(json.dumps(data))


def format_coordinates(latitude: float, longitude: float) -> str:
    """
    Format a coordinate pair for display.

    Returns:
        Formatted string (e.g., "33.1596°N, 117.0680°W")
    """
    lat_dir = "N" if latitude >= 0 else "S"
    lon_dir = "E" if longitude >= 0 else "W"
    return f"{abs(latitude):.4f}°{lat_dir}, {abs(longitude):.4f}°{lon_dir}"


def build_nights_table(title: str, nights: list[NightResult], timezone: str) -> Table:
    """
    Build a table with one row per night.

    Args:
        title: Table title
        nights: Night results in date order
        timezone: IANA zone used to display dates and times

    Returns:
        Rich table ready to print
    """
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Moon Phase")
    table.add_column("Lit", justify="right")
    table.add_column("Sunset", justify="right")
    table.add_column("Weather")
    table.add_column("Verdict")
    table.add_column("Reason", style="dim")

    for night in nights:
        date_text = format_date_in_timezone(night.date, timezone)
        if night.analysis is None:
            table.add_row(date_text, "", "", "", "", "[red]error[/red]", night.error or "")
            continue

        analysis = night.analysis
        weather_text = str(analysis.weather.condition)
        if analysis.weather.cloud_cover_percent is not None:
            weather_text += f" ({analysis.weather.cloud_cover_percent}% clouds)"

        table.add_row(
            date_text,
            str(analysis.moon_phase_name),
            f"{analysis.illumination_percent}%",
            format_time_in_timezone(analysis.sunset, timezone),
            weather_text,
            _CATEGORY_STYLES[analysis.category],
            analysis.reason or "",
        )

    return table
