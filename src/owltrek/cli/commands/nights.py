"""
Night Forecast Commands

Find the upcoming nights that suit stargazing or night hiking.
"""

import asyncio

import typer
from click import Context
from typer.core import TyperGroup

from owltrek.api.core.constants import WEATHER_FORECAST_DAYS
from owltrek.api.core.enums import WeatherPolicy
from owltrek.api.core.exceptions import OwlTrekError
from owltrek.api.core.utils import format_local_time
from owltrek.api.location.observer import ObserverLocation, get_observer_location, make_location
from owltrek.api.observation.night_planner import (
    MOON_CALENDAR_DAYS,
    build_moon_calendar,
    digest_subject,
    plan_location,
)
from owltrek.cli.utils.output import (
    build_nights_table,
    console,
    print_error,
    print_info,
    print_json,
    print_success,
    print_warning,
)


class SortedCommandsGroup(TyperGroup):
    """Custom Typer group that sorts commands alphabetically within each help panel."""

    def list_commands(self, ctx: Context) -> list[str]:
        """Return commands sorted alphabetically."""
        commands = super().list_commands(ctx)
        return sorted(commands)


app = typer.Typer(help="Night forecasts for stargazing and night hiking", cls=SortedCommandsGroup)


def _resolve_location(
    latitude: float | None, longitude: float | None, timezone: str | None, name: str | None
) -> ObserverLocation:
    """Use explicit coordinates when given, otherwise the saved observer location."""
    if latitude is None and longitude is None:
        return get_observer_location()
    if latitude is None or longitude is None:
        print_error("Both --lat and --lon are required to forecast a specific location")
        raise typer.Exit(code=1) from None
    return make_location(latitude, longitude, timezone=timezone, name=name)


@app.command("forecast")
def forecast(
    latitude: float | None = typer.Option(
        None, "--lat", help="Latitude in degrees (-90 to +90)", envvar="OWLTREK_LATITUDE"
    ),
    longitude: float | None = typer.Option(
        None, "--lon", help="Longitude in degrees (-180 to +180)", envvar="OWLTREK_LONGITUDE"
    ),
    timezone: str | None = typer.Option(
        None, "--tz", help="IANA timezone (looked up from coordinates if omitted)", envvar="OWLTREK_TIMEZONE"
    ),
    name: str | None = typer.Option(None, "--name", help="Optional location name"),
    days: int = typer.Option(WEATHER_FORECAST_DAYS, "--days", "-d", min=1, help="Number of nights to forecast"),
    weather_policy: WeatherPolicy = typer.Option(
        WeatherPolicy.GATED,
        "--weather-policy",
        help="gated: bad weather rules a night out; optimistic: weather is informational",
        envvar="OWLTREK_WEATHER_POLICY",
        case_sensitive=False,
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Forecast the next nights, combining the moon with the weather.

    Example:
        owltrek nights forecast
        owltrek nights forecast --lat 33.1596 --lon -117.0680 --name "San Marcos"
        owltrek nights forecast --days 3 --weather-policy optimistic --json
    """
    try:
        location = _resolve_location(latitude, longitude, timezone, name)
        result = asyncio.run(plan_location(location, days=days, weather_policy=weather_policy))
    except OwlTrekError as e:
        print_error(f"Failed to forecast nights: {e}")
        raise typer.Exit(code=1) from e

    if json_output:
        print_json(result.to_dict())
        return

    console.print(
        build_nights_table(f"Nights at {location.display_name}", list(result.nights), location.timezone)
    )
    console.print(
        f"[dim]Generated {format_local_time(result.generated_at, location.latitude, location.longitude)}[/dim]"
    )

    if not result.weather_available:
        print_warning("Weather forecast unavailable; nights were judged on the moon alone")

    next_night = result.next_good_night()
    if next_night is None:
        print_info(f"No good nights in the next {days} days")
        return

    when = "tonight" if next_night.days_from_now == 0 else f"in {next_night.days_from_now} day(s)"
    print_success(f"{digest_subject(result)}")
    console.print(
        f"Next outdoor night: [bold]{next_night.analysis.date_string}[/bold] ({when}), {next_night.analysis.reason}"
    )


@app.command("calendar")
def calendar(
    latitude: float | None = typer.Option(
        None, "--lat", help="Latitude in degrees (-90 to +90)", envvar="OWLTREK_LATITUDE"
    ),
    longitude: float | None = typer.Option(
        None, "--lon", help="Longitude in degrees (-180 to +180)", envvar="OWLTREK_LONGITUDE"
    ),
    timezone: str | None = typer.Option(
        None, "--tz", help="IANA timezone (looked up from coordinates if omitted)", envvar="OWLTREK_TIMEZONE"
    ),
    name: str | None = typer.Option(None, "--name", help="Optional location name"),
    days: int = typer.Option(MOON_CALENDAR_DAYS, "--days", "-d", min=1, help="Number of nights to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Moon-only calendar of upcoming nights (no weather).

    Example:
        owltrek nights calendar
        owltrek nights calendar --days 60 --json
    """
    try:
        location = _resolve_location(latitude, longitude, timezone, name)
        nights = build_moon_calendar(location, days=days)
    except OwlTrekError as e:
        print_error(f"Failed to build moon calendar: {e}")
        raise typer.Exit(code=1) from e

    if json_output:
        print_json(
            [
                night.analysis.to_dict() if night.analysis is not None else {"error": night.error}
                for night in nights
            ]
        )
        return

    console.print(build_nights_table(f"Moon calendar for {location.display_name}", nights, location.timezone))
    good = sum(1 for night in nights if night.analysis is not None and night.analysis.is_good_night)
    print_info(f"{good} of {len(nights)} nights have good moon conditions")
