"""
Common Enums

Enumerations used throughout the OwlTrek API.
"""

from enum import StrEnum


__all__ = [
    "MoonPhase",
    "NightCategory",
    "WeatherCondition",
    "WeatherPolicy",
]


class MoonPhase(StrEnum):
    """Moon phase names."""

    NEW_MOON = "New Moon"
    WAXING_CRESCENT = "Waxing Crescent"
    FIRST_QUARTER = "First Quarter"
    WAXING_GIBBOUS = "Waxing Gibbous"
    FULL_MOON = "Full Moon"
    WANING_GIBBOUS = "Waning Gibbous"
    LAST_QUARTER = "Last Quarter"
    WANING_CRESCENT = "Waning Crescent"


class NightCategory(StrEnum):
    """What a good night is good for."""

    STARGAZING = "stargazing"  # Dark sky
    HIKING = "hiking"  # Bright full moon
    NONE = "none"  # Not a good night


class WeatherCondition(StrEnum):
    """Human-readable weather summary for a night."""

    CLEAR = "Clear"
    PARTLY_CLOUDY = "Partly Cloudy"
    MOSTLY_CLOUDY = "Mostly Cloudy"
    OVERCAST = "Overcast"
    TOO_FAR_OUT = "Too far out"  # Beyond the forecast horizon
    UNAVAILABLE = "Unavailable"  # Forecast fetch failed


class WeatherPolicy(StrEnum):
    """How weather affects the good-night decision."""

    GATED = "gated"  # Cloudy, wet or windy nights are never good
    OPTIMISTIC = "optimistic"  # Weather is reported but never blocks a night
