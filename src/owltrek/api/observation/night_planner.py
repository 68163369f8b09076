"""
Night Planning

Runs the night analyzer over a window of nights for one or many locations.

A batch reads the clock once, so every night and every location in it is
judged against the same "now". Failures are reported per item: one bad
night or one bad location never aborts the rest of the batch, and a failed
weather fetch only downgrades the affected location to moon-only analysis.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from owltrek.api.astronomy.solar_system import AstronomyProvider, SkyfieldAstronomy
from owltrek.api.core.constants import WEATHER_FORECAST_DAYS
from owltrek.api.core.dates import days_between, generate_candidate_nights
from owltrek.api.core.enums import WeatherPolicy
from owltrek.api.core.exceptions import OwlTrekError
from owltrek.api.core.utils import ensure_utc, format_date_string
from owltrek.api.location.observer import ObserverLocation, validate_location
from owltrek.api.location.weather import (
    NightWeather,
    OpenMeteoWeatherProvider,
    WeatherProvider,
    fetch_nightly_weather_safe,
)
from owltrek.api.observation.night_analyzer import NightAnalysis, analyze_night


logger = logging.getLogger(__name__)

__all__ = [
    "DigestEntry",
    "LocationForecast",
    "NextGoodNight",
    "NightResult",
    "build_moon_calendar",
    "digest_subject",
    "plan_digest",
    "plan_location",
]

MOON_CALENDAR_DAYS = 30


@dataclass(frozen=True)
class NightResult:
    """Analysis of one night, or the error that prevented it."""

    date: datetime  # Candidate night (local midnight)
    analysis: NightAnalysis | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.analysis is not None


@dataclass(frozen=True)
class NextGoodNight:
    """The first good night in a forecast."""

    analysis: NightAnalysis
    days_from_now: int  # 0 = tonight


@dataclass(frozen=True)
class LocationForecast:
    """Forecast for one location over a window of nights."""

    location: ObserverLocation
    generated_at: datetime  # Frozen "now" for the batch
    nights: tuple[NightResult, ...]
    weather_available: bool  # False when the forecast fetch failed or was skipped

    @property
    def analyses(self) -> list[NightAnalysis]:
        return [night.analysis for night in self.nights if night.analysis is not None]

    @property
    def good_nights(self) -> list[NightAnalysis]:
        return [analysis for analysis in self.analyses if analysis.is_good_night]

    def next_good_night(self) -> NextGoodNight | None:
        for night in self.nights:
            if night.analysis is not None and night.analysis.is_good_night:
                days = days_between(self.generated_at, night.date, self.location.timezone)
                return NextGoodNight(analysis=night.analysis, days_from_now=days)
        return None

    def to_dict(self) -> dict[str, Any]:
        next_night = self.next_good_night()
        return {
            "location": {
                "name": self.location.name,
                "latitude": self.location.latitude,
                "longitude": self.location.longitude,
                "timezone": self.location.timezone,
            },
            "generated_at": self.generated_at.isoformat(),
            "weather_available": self.weather_available,
            "nights": [
                night.analysis.to_dict()
                if night.analysis is not None
                else {"date": format_date_string(night.date, self.location.timezone), "error": night.error}
                for night in self.nights
            ],
            "next_good_night": (
                {"date": next_night.analysis.date_string, "days_from_now": next_night.days_from_now}
                if next_night
                else None
            ),
        }


@dataclass(frozen=True)
class DigestEntry:
    """Digest outcome for one location."""

    location: ObserverLocation
    forecast: LocationForecast | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.forecast is not None


def _frozen_now(now: datetime | None) -> datetime:
    return ensure_utc(now) if now is not None else datetime.now(UTC)


def _analyze_nights(
    location: ObserverLocation,
    nights: Sequence[datetime],
    astronomy: AstronomyProvider,
    weather_data: dict[str, NightWeather],
    weather_policy: WeatherPolicy,
    weather_unavailable: bool,
) -> tuple[NightResult, ...]:
    results: list[NightResult] = []
    for night in nights:
        date_string = format_date_string(night, location.timezone)
        try:
            analysis = analyze_night(
                night,
                location.latitude,
                location.longitude,
                location.timezone,
                weather_data.get(date_string),
                astronomy=astronomy,
                weather_policy=weather_policy,
                weather_unavailable=weather_unavailable,
            )
        except OwlTrekError as e:
            logger.error(f"Failed to analyze {date_string} for {location.display_name}: {e}")
            results.append(NightResult(date=night, error=str(e)))
        else:
            results.append(NightResult(date=night, analysis=analysis))
    return tuple(results)


async def plan_location(
    location: ObserverLocation,
    *,
    days: int = WEATHER_FORECAST_DAYS,
    now: datetime | None = None,
    astronomy: AstronomyProvider | None = None,
    weather: WeatherProvider | None = None,
    include_weather: bool = True,
    weather_policy: WeatherPolicy = WeatherPolicy.GATED,
) -> LocationForecast:
    """
    Forecast the next ``days`` nights for a location.

    Args:
        location: Where to forecast
        days: Number of nights starting tonight
        now: Frozen reference instant (default: current time, read once)
        astronomy: Moon/sun source (default: Skyfield)
        weather: Weather source (default: Open-Meteo)
        include_weather: Fetch a weather forecast at all
        weather_policy: Whether weather can rule a night out

    Returns:
        LocationForecast with one NightResult per night

    Raises:
        InvalidCoordinateError: If the location's coordinates are out of range
        InvalidTimezoneError: If the location's timezone is unknown
    """
    validate_location(location)
    generated_at = _frozen_now(now)
    nights = generate_candidate_nights(location.timezone, days, generated_at)
    astronomy = astronomy or SkyfieldAstronomy()

    weather_data: dict[str, NightWeather] = {}
    weather_available = False
    if include_weather:
        provider = weather or OpenMeteoWeatherProvider()
        weather_data, weather_available = await fetch_nightly_weather_safe(
            provider, location.latitude, location.longitude, location.timezone
        )

    # Skyfield calls block; run them off the event loop
    results = await asyncio.to_thread(
        _analyze_nights,
        location,
        nights,
        astronomy,
        weather_data,
        weather_policy,
        weather_unavailable=include_weather and not weather_available,
    )
    logger.debug(
        f"Planned {len(results)} nights for {location.display_name}: "
        f"{sum(1 for r in results if r.analysis and r.analysis.is_good_night)} good"
    )
    return LocationForecast(
        location=location,
        generated_at=generated_at,
        nights=results,
        weather_available=weather_available,
    )


def build_moon_calendar(
    location: ObserverLocation,
    *,
    days: int = MOON_CALENDAR_DAYS,
    now: datetime | None = None,
    astronomy: AstronomyProvider | None = None,
) -> list[NightResult]:
    """
    Moon-only outlook for the next ``days`` nights.

    Weather is never fetched, so every night reports "Too far out" and is
    judged on the moon alone.
    """
    validate_location(location)
    nights = generate_candidate_nights(location.timezone, days, _frozen_now(now))
    return list(
        _analyze_nights(
            location,
            nights,
            astronomy or SkyfieldAstronomy(),
            weather_data={},
            weather_policy=WeatherPolicy.OPTIMISTIC,
            weather_unavailable=False,
        )
    )


async def plan_digest(
    locations: Sequence[ObserverLocation],
    *,
    days: int = WEATHER_FORECAST_DAYS,
    now: datetime | None = None,
    astronomy: AstronomyProvider | None = None,
    weather: WeatherProvider | None = None,
    weather_policy: WeatherPolicy = WeatherPolicy.GATED,
) -> list[DigestEntry]:
    """
    Forecast many locations concurrently.

    Args:
        locations: Locations to forecast
        days: Number of nights per location
        now: Frozen reference instant shared by every location
        astronomy: Moon/sun source shared by every location
        weather: Weather source shared by every location
        weather_policy: Whether weather can rule a night out

    Returns:
        One DigestEntry per location, in input order
    """
    generated_at = _frozen_now(now)
    astronomy = astronomy or SkyfieldAstronomy()
    weather = weather or OpenMeteoWeatherProvider()

    tasks = [
        plan_location(
            location,
            days=days,
            now=generated_at,
            astronomy=astronomy,
            weather=weather,
            weather_policy=weather_policy,
        )
        for location in locations
    ]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    entries: list[DigestEntry] = []
    for location, result in zip(locations, results, strict=True):
        if isinstance(result, Exception):
            logger.error(f"Error planning nights for {location.display_name}: {result}")
            entries.append(DigestEntry(location=location, error=str(result)))
        elif isinstance(result, BaseException):
            raise result
        else:
            entries.append(DigestEntry(location=location, forecast=result))

    return entries


def digest_subject(forecast: LocationForecast) -> str:
    """Subject line for a location's digest, e.g. "3 good nights coming up"."""
    count = len(forecast.good_nights)
    return f"{count} good night{'' if count == 1 else 's'} coming up"
