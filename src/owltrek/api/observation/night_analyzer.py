"""
Night Analysis

Decides whether a night is good for stargazing or night hiking.

Good Night Criteria (weather permitting):
1. Full Moon (>90% illumination) - Great for night hiking with natural light
2. New Moon (<10% illumination) - Dark skies for stargazing
3. Moon-free evening window - Moon is below the horizon for a useful part of
   the evening (sunset to local midnight)

Weather is checked first: a cloudy, wet or windy night is never good. Nights
past the forecast horizon have no weather data and are judged on the moon
alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, NamedTuple

import deal

from owltrek.api.astronomy.solar_system import AstronomyProvider, illumination_percent, moon_phase_name
from owltrek.api.core.constants import (
    CLEAR_MAX_CLOUD_COVER,
    EARLY_MOONSET_MAX_HOURS,
    FULL_MOON_MIN_ILLUMINATION,
    LATE_MOONRISE_MIN_HOURS,
    MOSTLY_CLOUDY_MAX_CLOUD_COVER,
    NEW_MOON_MAX_ILLUMINATION,
    PARTLY_CLOUDY_MAX_CLOUD_COVER,
)
from owltrek.api.core.dates import start_of_local_day
from owltrek.api.core.enums import MoonPhase, NightCategory, WeatherCondition, WeatherPolicy
from owltrek.api.core.utils import ensure_utc, format_date_string, get_zone, validate_coordinates
from owltrek.api.location.weather import NightWeather


logger = logging.getLogger(__name__)

__all__ = [
    "MOON_DOWN_ALL_EVENING",
    "MOON_SETS_EARLY",
    "LATE_MOONRISE",
    "FULL_MOON_REASON",
    "NEW_MOON_REASON",
    "MoonFreeEvening",
    "NightAnalysis",
    "WeatherSummary",
    "analyze_night",
    "check_moon_free_evening",
    "describe_weather",
    "is_clear_enough",
]

FULL_MOON_REASON = "Full moon for night hiking"
NEW_MOON_REASON = "New moon for stargazing"
MOON_DOWN_ALL_EVENING = "Moon down all evening — dark skies"
MOON_SETS_EARLY = "Moon sets early — dark skies"
LATE_MOONRISE = "Late moonrise — dark evening"


class MoonFreeEvening(NamedTuple):
    """Whether the moon stays out of the evening sky, and why."""

    is_moon_free: bool
    reason: str  # Empty when not moon-free


@dataclass(frozen=True)
class WeatherSummary:
    """Weather as reported alongside a night analysis."""

    condition: WeatherCondition
    cloud_cover_percent: int | None = None  # Rounded average, None without data
    temperature_c: int | None = None  # Rounded average, None without data
    wind_speed_kmh: int | None = None  # Rounded average, None without data

    @property
    def has_weather_data(self) -> bool:
        return self.condition not in (WeatherCondition.TOO_FAR_OUT, WeatherCondition.UNAVAILABLE)


@dataclass(frozen=True)
class NightAnalysis:
    """Outcome of analyzing one night."""

    date_string: str  # YYYY-MM-DD local calendar date
    illumination_percent: int  # 0-100
    moon_phase: float  # 0-1 (0 = new, 0.5 = full)
    moon_rise: datetime | None
    moon_set: datetime | None
    sunset: datetime | None
    weather: WeatherSummary
    is_good_night: bool
    category: NightCategory
    reason: str | None  # Present only for good nights

    @property
    def moon_phase_name(self) -> MoonPhase:
        return moon_phase_name(self.moon_phase)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation (instants as ISO-8601 strings)."""

        def _iso(dt: datetime | None) -> str | None:
            return dt.isoformat() if dt is not None else None

        return {
            "date": self.date_string,
            "illumination_percent": self.illumination_percent,
            "moon_phase": self.moon_phase,
            "moon_phase_name": str(self.moon_phase_name),
            "moon_rise": _iso(self.moon_rise),
            "moon_set": _iso(self.moon_set),
            "sunset": _iso(self.sunset),
            "weather": {
                "condition": str(self.weather.condition),
                "cloud_cover_percent": self.weather.cloud_cover_percent,
                "temperature_c": self.weather.temperature_c,
                "wind_speed_kmh": self.weather.wind_speed_kmh,
                "has_weather_data": self.weather.has_weather_data,
            },
            "is_good_night": self.is_good_night,
            "category": str(self.category),
            "reason": self.reason,
        }


def _hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def _to_utc(dt: datetime | None) -> datetime | None:
    return None if dt is None else ensure_utc(dt).astimezone(UTC)


def _moon_up_at(instant: datetime, moon_rise: datetime | None, moon_set: datetime | None) -> bool:
    """Whether the moon is above the horizon at ``instant``, judged from the nearest crossing."""
    crossings = sorted((t, is_rise) for t, is_rise in ((moon_rise, True), (moon_set, False)) if t is not None)
    before = [is_rise for t, is_rise in crossings if t <= instant]
    if before:
        return before[-1]
    after = [is_rise for t, is_rise in crossings if t > instant]
    if after:
        # Next crossing is a set: it was up
        return not after[0]
    return False


def check_moon_free_evening(
    sunset: datetime | None,
    moon_set: datetime | None,
    moon_rise: datetime | None,
    next_day_moon_rise: datetime | None,
    timezone: str,
) -> MoonFreeEvening:
    """
    Check if the moon is below the horizon during the evening (sunset to local midnight).

    This catches scenarios like:
    - Moon set before sunset and doesn't rise again until after midnight
    - Moon sets within an hour after sunset
    - Moon doesn't rise until at least 4 hours after sunset

    A moon that is already up at sunset (it rose after setting, earlier the
    same day) never counts as down all evening or as a late riser.

    Args:
        sunset: Sunset for the night (None at extreme latitudes)
        moon_set: Moonset on the night's calendar day
        moon_rise: Moonrise on the night's calendar day
        next_day_moon_rise: Moonrise on the following calendar day
        timezone: Observer's IANA zone, defines local midnight

    Returns:
        MoonFreeEvening with the first matching reason
    """
    if sunset is None:
        return MoonFreeEvening(False, "")

    # All comparisons in UTC; same-tzinfo arithmetic would ignore offset changes
    sunset = ensure_utc(sunset).astimezone(UTC)
    moon_set = _to_utc(moon_set)
    moon_rise = _to_utc(moon_rise)
    next_day_moon_rise = _to_utc(next_day_moon_rise)

    tz = get_zone(timezone)
    midnight = start_of_local_day(sunset.astimezone(tz).date() + timedelta(days=1), tz)
    up_at_sunset = _moon_up_at(sunset, moon_rise, moon_set)

    # Rising later tonight, or else the next rising tomorrow
    effective_rise = moon_rise if moon_rise is not None and moon_rise > sunset else next_day_moon_rise

    # Moon set before sunset (was up during day) and stays down until after midnight
    if moon_set is not None and moon_set < sunset and not up_at_sunset:
        if effective_rise is None or effective_rise > midnight:
            return MoonFreeEvening(True, MOON_DOWN_ALL_EVENING)

    # Brief moon after sunset, then dark
    if moon_set is not None and moon_set > sunset:
        if _hours_between(sunset, moon_set) <= EARLY_MOONSET_MAX_HOURS:
            return MoonFreeEvening(True, MOON_SETS_EARLY)

    # At least 4 hours of dark sky before the moon comes up
    if effective_rise is not None and not up_at_sunset:
        if _hours_between(sunset, effective_rise) >= LATE_MOONRISE_MIN_HOURS:
            return MoonFreeEvening(True, LATE_MOONRISE)

    return MoonFreeEvening(False, "")


def is_clear_enough(night_weather: NightWeather | None) -> bool:
    """
    Weather gate for a night.

    Cloud cover below 30%, precipitation probability below 20% and wind
    below 25 km/h. Without a forecast the night is optimistically clear.
    """
    if night_weather is None:
        return True
    return night_weather.is_good_weather


def describe_weather(night_weather: NightWeather | None, *, unavailable: bool = False) -> WeatherCondition:
    """Get a human-readable weather description."""
    if night_weather is None:
        return WeatherCondition.UNAVAILABLE if unavailable else WeatherCondition.TOO_FAR_OUT

    cloud_cover = night_weather.cloud_cover_percent
    if cloud_cover is None:
        return WeatherCondition.UNAVAILABLE
    if cloud_cover < CLEAR_MAX_CLOUD_COVER:
        return WeatherCondition.CLEAR
    if cloud_cover < PARTLY_CLOUDY_MAX_CLOUD_COVER:
        return WeatherCondition.PARTLY_CLOUDY
    if cloud_cover < MOSTLY_CLOUDY_MAX_CLOUD_COVER:
        return WeatherCondition.MOSTLY_CLOUDY
    return WeatherCondition.OVERCAST


def _round(value: float | None) -> int | None:
    return None if value is None else int(round(value))


def _summarize_weather(night_weather: NightWeather | None, unavailable: bool) -> WeatherSummary:
    condition = describe_weather(night_weather, unavailable=unavailable)
    if night_weather is None:
        return WeatherSummary(condition=condition)
    return WeatherSummary(
        condition=condition,
        cloud_cover_percent=_round(night_weather.cloud_cover_percent),
        temperature_c=_round(night_weather.temperature_c),
        wind_speed_kmh=_round(night_weather.wind_speed_kmh),
    )


@deal.post(lambda result: result.is_good_night == (result.category != NightCategory.NONE))
@deal.post(lambda result: (result.reason is not None) == result.is_good_night)
def analyze_night(
    candidate_night: datetime,
    latitude: float,
    longitude: float,
    timezone: str,
    night_weather: NightWeather | None = None,
    *,
    astronomy: AstronomyProvider,
    weather_policy: WeatherPolicy = WeatherPolicy.GATED,
    weather_unavailable: bool = False,
) -> NightAnalysis:
    """
    Analyze a night for hiking/stargazing conditions.

    Args:
        candidate_night: Local midnight starting the night's calendar day
        latitude: Observer latitude in degrees
        longitude: Observer longitude in degrees
        timezone: Observer's IANA zone
        night_weather: Forecast for the night, None when beyond the horizon
        astronomy: Source of moon and sun facts
        weather_policy: GATED blocks bad-weather nights, OPTIMISTIC only reports weather
        weather_unavailable: The forecast fetch failed (reported as "Unavailable")

    Returns:
        NightAnalysis for the night

    Raises:
        InvalidCoordinateError: If the coordinates are out of range
        InvalidTimezoneError: If the timezone is unknown
    """
    validate_coordinates(latitude, longitude)
    tz = get_zone(timezone)
    candidate_night = ensure_utc(candidate_night)

    illumination = astronomy.moon_illumination(candidate_night)
    moon_times = astronomy.moon_times(candidate_night, latitude, longitude)
    sunset = astronomy.sunset(candidate_night, latitude, longitude)

    # Moonrise relevant to tonight may fall after local midnight
    next_day = start_of_local_day(candidate_night.astimezone(tz).date() + timedelta(days=1), tz)
    next_day_moon_times = astronomy.moon_times(next_day, latitude, longitude)

    raw_illumination = illumination.fraction * 100
    is_new_moon = raw_illumination < NEW_MOON_MAX_ILLUMINATION
    is_full_moon = raw_illumination > FULL_MOON_MIN_ILLUMINATION

    moon_free = check_moon_free_evening(
        sunset,
        moon_times.moonset_time,
        moon_times.moonrise_time,
        next_day_moon_times.moonrise_time,
        timezone,
    )

    if weather_policy == WeatherPolicy.OPTIMISTIC:
        clear_enough = True
    else:
        clear_enough = is_clear_enough(night_weather)

    category = NightCategory.NONE
    reason: str | None = None

    if clear_enough:
        if is_full_moon:
            category = NightCategory.HIKING
            reason = FULL_MOON_REASON
        elif is_new_moon:
            category = NightCategory.STARGAZING
            reason = NEW_MOON_REASON
        elif moon_free.is_moon_free:
            category = NightCategory.STARGAZING
            reason = moon_free.reason

    date_string = format_date_string(candidate_night, timezone)
    logger.debug(
        f"{date_string} ({latitude:.4f}, {longitude:.4f}): {raw_illumination:.1f}% lit, "
        f"clear={clear_enough}, category={category}"
    )

    return NightAnalysis(
        date_string=date_string,
        illumination_percent=illumination_percent(illumination.fraction),
        moon_phase=illumination.phase,
        moon_rise=moon_times.moonrise_time,
        moon_set=moon_times.moonset_time,
        sunset=sunset,
        weather=_summarize_weather(night_weather, weather_unavailable),
        is_good_night=category != NightCategory.NONE,
        category=category,
        reason=reason,
    )
