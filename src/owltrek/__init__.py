"""
OwlTrek Night Forecasting Library

Finds the nights that are good for outdoor night activities at a location:
dark, moon-free skies for stargazing or a bright full moon for night hiking,
gated by the short-range weather forecast.

Based on:
- Lunar illumination and phase (new moon < 10%, full moon > 90%)
- Moonrise/moonset relative to sunset (moon-free evening windows)
- Open-Meteo night forecasts (cloud cover, precipitation, wind)

Example:
    >>> import asyncio
    >>> from owltrek import make_location, plan_location
    >>> location = make_location(33.159586, -117.067950, name="San Marcos, CA")
    >>> forecast = asyncio.run(plan_location(location))
    >>> for night in forecast.good_nights:
    ...     print(night.date_string, night.category, night.reason)
"""

from owltrek.api.astronomy.solar_system import (
    AstronomyProvider,
    MoonIllumination,
    MoonTimes,
    SkyfieldAstronomy,
    moon_phase_name,
)
from owltrek.api.core.dates import generate_candidate_nights, get_next_week

# Enums
from owltrek.api.core.enums import MoonPhase, NightCategory, WeatherCondition, WeatherPolicy

# Exceptions
from owltrek.api.core.exceptions import (
    ConfigurationError,
    EphemerisError,
    InvalidCoordinateError,
    InvalidTimezoneError,
    OwlTrekError,
    WeatherError,
    WeatherFetchError,
    WeatherFormatError,
)
from owltrek.api.location.observer import DEFAULT_LOCATION, ObserverLocation, make_location
from owltrek.api.location.weather import NightWeather, OpenMeteoWeatherProvider, WeatherProvider
from owltrek.api.observation.night_analyzer import NightAnalysis, WeatherSummary, analyze_night
from owltrek.api.observation.night_planner import (
    DigestEntry,
    LocationForecast,
    build_moon_calendar,
    plan_digest,
    plan_location,
)


__version__ = "0.1.0"

__all__ = [
    "DEFAULT_LOCATION",
    "AstronomyProvider",
    "ConfigurationError",
    "DigestEntry",
    "EphemerisError",
    "InvalidCoordinateError",
    "InvalidTimezoneError",
    "LocationForecast",
    "MoonIllumination",
    "MoonPhase",
    "MoonTimes",
    "NightAnalysis",
    "NightCategory",
    "NightWeather",
    "ObserverLocation",
    "OpenMeteoWeatherProvider",
    "OwlTrekError",
    "SkyfieldAstronomy",
    "WeatherCondition",
    "WeatherError",
    "WeatherFetchError",
    "WeatherFormatError",
    "WeatherPolicy",
    "WeatherProvider",
    "WeatherSummary",
    "__version__",
    "analyze_night",
    "build_moon_calendar",
    "generate_candidate_nights",
    "get_next_week",
    "make_location",
    "moon_phase_name",
    "plan_digest",
    "plan_location",
]
