"""
Weather API Integration

Nightly weather forecasts for judging whether the sky will be usable.
Uses Open-Meteo API (free, no API key required).
https://open-meteo.com/en/docs

Hourly samples are grouped into "nights": 8 PM through 2 AM local time, with
the early-morning hours attributed to the previous evening. Forecasts are
limited to 7 days since accuracy degrades significantly beyond that; a date
without a bucket simply has no forecast, which is not an error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Protocol

import aiohttp
import numpy as np

from owltrek.api.core.constants import (
    MAX_CLOUD_COVER_PERCENT,
    MAX_PRECIPITATION_PROBABILITY_PERCENT,
    MAX_WIND_SPEED_KMH,
    NIGHT_END_HOUR,
    NIGHT_START_HOUR,
    WEATHER_FORECAST_DAYS,
)
from owltrek.api.core.exceptions import WeatherError, WeatherFetchError, WeatherFormatError


logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "OPEN_METEO_URL",
    "HourlyWeather",
    "NightWeather",
    "OpenMeteoWeatherProvider",
    "WeatherProvider",
    "aggregate_night_weather",
    "fetch_nightly_weather",
    "fetch_nightly_weather_safe",
    "night_date_for",
    "parse_hourly_weather",
    "safe_float",
]

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Open-Meteo hourly variable -> HourlyWeather field
_HOURLY_FIELDS: dict[str, str] = {
    "cloud_cover": "cloud_cover_percent",
    "temperature_2m": "temperature_c",
    "wind_speed_10m": "wind_speed_kmh",
    "precipitation_probability": "precipitation_probability_percent",
    "visibility": "visibility_m",
    "relative_humidity_2m": "humidity_percent",
}


@dataclass(frozen=True)
class HourlyWeather:
    """One hourly forecast sample."""

    timestamp: datetime  # Wall-clock time in the forecast's own timezone
    cloud_cover_percent: float | None = None  # 0-100%
    temperature_c: float | None = None  # °C
    wind_speed_kmh: float | None = None  # km/h
    precipitation_probability_percent: float | None = None  # 0-100%
    visibility_m: float | None = None  # meters
    humidity_percent: float | None = None  # 0-100%


def _within(value: float | None, limit: float) -> bool:
    # Missing measurements never fail a criterion
    return value is None or value < limit


@dataclass(frozen=True)
class NightWeather:
    """Weather reduced over one night's hours."""

    cloud_cover_percent: float | None  # Average cloud cover during night hours
    temperature_c: float | None  # Average temperature during night hours
    wind_speed_kmh: float | None  # Average wind speed
    precipitation_probability_percent: float | None  # Max precipitation probability
    visibility_m: float | None  # Average visibility
    humidity_percent: float | None  # Average humidity
    sample_count: int = 0  # Hourly samples in the bucket

    @property
    def is_clear(self) -> bool:
        """Cloud cover below 30%."""
        return _within(self.cloud_cover_percent, MAX_CLOUD_COVER_PERCENT)

    @property
    def is_good_weather(self) -> bool:
        """Clear, low chance of precipitation, and wind below 25 km/h."""
        return (
            self.is_clear
            and _within(self.precipitation_probability_percent, MAX_PRECIPITATION_PROBABILITY_PERCENT)
            and _within(self.wind_speed_kmh, MAX_WIND_SPEED_KMH)
        )


def safe_float(value: Any) -> float | None:
    """Convert value to float, returning None if NaN, None or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    if np.isnan(result):
        return None
    return result


def parse_hourly_weather(payload: dict[str, Any]) -> list[HourlyWeather]:
    """
    Parse an Open-Meteo forecast response into hourly samples.

    Args:
        payload: Decoded JSON body of a forecast request

    Returns:
        Samples in response order

    Raises:
        WeatherFormatError: If the hourly time series is missing or malformed
    """
    if not isinstance(payload, dict):
        raise WeatherFormatError(f"Unexpected weather payload type: {type(payload).__name__}")
    hourly = payload.get("hourly")
    if not isinstance(hourly, dict) or not isinstance(hourly.get("time"), list):
        raise WeatherFormatError("Weather payload has no hourly time series")

    times: list[Any] = hourly["time"]
    series: dict[str, list[Any]] = {}
    for api_name, field_name in _HOURLY_FIELDS.items():
        values = hourly.get(api_name) or []
        if not isinstance(values, list):
            raise WeatherFormatError(f"Hourly series {api_name!r} is not a list")
        series[field_name] = values

    samples: list[HourlyWeather] = []
    for i, raw_time in enumerate(times):
        try:
            timestamp = datetime.fromisoformat(str(raw_time).replace("Z", "+00:00"))
        except ValueError as e:
            raise WeatherFormatError(f"Invalid hourly timestamp: {raw_time!r}") from e

        fields = {name: safe_float(values[i] if i < len(values) else None) for name, values in series.items()}
        samples.append(HourlyWeather(timestamp=timestamp, **fields))

    return samples


def night_date_for(timestamp: datetime) -> date | None:
    """
    Get the night a sample belongs to.

    Hours 20-23 belong to their own date; hours 0-2 belong to the previous
    date (it's the same night). Daytime hours belong to no night.
    """
    if timestamp.hour >= NIGHT_START_HOUR:
        return timestamp.date()
    if timestamp.hour <= NIGHT_END_HOUR:
        return timestamp.date() - timedelta(days=1)
    return None


def _reduce(samples: list[HourlyWeather], field_name: str, reducer: Callable[[np.ndarray], Any]) -> float | None:
    values = np.array(
        [np.nan if (v := getattr(s, field_name)) is None else v for s in samples],
        dtype=float,
    )
    if values.size == 0 or np.isnan(values).all():
        return None
    return float(reducer(values))


def aggregate_night_weather(hourly: Iterable[HourlyWeather]) -> dict[str, NightWeather]:
    """
    Reduce hourly samples to one ``NightWeather`` per night.

    Averages cloud cover, temperature, wind, visibility and humidity; takes the
    maximum precipitation probability so a single wet hour flags the night.

    Returns:
        Mapping of ``YYYY-MM-DD`` night dates to their weather, in date order
    """
    buckets: dict[date, list[HourlyWeather]] = {}
    for sample in hourly:
        night = night_date_for(sample.timestamp)
        if night is not None:
            buckets.setdefault(night, []).append(sample)

    result: dict[str, NightWeather] = {}
    for night, samples in sorted(buckets.items()):
        if not samples:
            continue
        result[night.isoformat()] = NightWeather(
            cloud_cover_percent=_reduce(samples, "cloud_cover_percent", np.nanmean),
            temperature_c=_reduce(samples, "temperature_c", np.nanmean),
            wind_speed_kmh=_reduce(samples, "wind_speed_kmh", np.nanmean),
            precipitation_probability_percent=_reduce(samples, "precipitation_probability_percent", np.nanmax),
            visibility_m=_reduce(samples, "visibility_m", np.nanmean),
            humidity_percent=_reduce(samples, "humidity_percent", np.nanmean),
            sample_count=len(samples),
        )

    return result


async def _request_forecast(
    session: aiohttp.ClientSession, params: dict[str, str | int | float], timeout: float
) -> dict[str, Any]:
    async with session.get(OPEN_METEO_URL, params=params, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
        if response.status != 200:
            raise WeatherFetchError(f"Weather API error: {response.status}", status=response.status)
        data: dict[str, Any] = await response.json()
        return data


async def fetch_nightly_weather(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "auto",
    session: aiohttp.ClientSession | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    forecast_days: int = WEATHER_FORECAST_DAYS,
) -> dict[str, NightWeather]:
    """
    Fetch the hourly forecast and return night-averaged data keyed by date string.

    Only returns data for the next ``forecast_days`` days (max 7).

    Args:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        timezone: IANA zone the night buckets are dated in ("auto" uses the
            zone Open-Meteo resolves for the coordinates)
        session: Optional shared aiohttp session
        timeout: Total request timeout in seconds
        forecast_days: Days of forecast to request

    Returns:
        Mapping of ``YYYY-MM-DD`` to ``NightWeather``

    Raises:
        WeatherFetchError: Non-200 status, network failure or timeout
        WeatherFormatError: Response body is not a usable forecast
    """
    params: dict[str, str | int | float] = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(_HOURLY_FIELDS),
        "forecast_days": min(forecast_days, WEATHER_FORECAST_DAYS),
        "timezone": timezone,  # Timestamps are wall-clock time in this zone
    }

    try:
        if session is not None:
            data = await _request_forecast(session, params, timeout)
        else:
            async with aiohttp.ClientSession() as own_session:
                data = await _request_forecast(own_session, params, timeout)
    except (aiohttp.ClientError, TimeoutError) as e:
        # aiohttp.ClientError: HTTP/network errors (includes non-JSON content type)
        # TimeoutError: request timeout
        raise WeatherFetchError(f"Weather API request failed: {e}") from e
    except ValueError as e:
        # Invalid JSON body
        raise WeatherFormatError(f"Weather API returned invalid JSON: {e}") from e

    nightly = aggregate_night_weather(parse_hourly_weather(data))
    logger.debug(f"Fetched {len(nightly)} nights of weather for ({latitude:.4f}, {longitude:.4f})")
    return nightly


class WeatherProvider(Protocol):
    """Source of nightly weather aggregates for a coordinate."""

    async def fetch_nightly(
        self, latitude: float, longitude: float, timezone: str = "auto"
    ) -> dict[str, NightWeather]: ...


class OpenMeteoWeatherProvider:
    """``WeatherProvider`` backed by the Open-Meteo forecast API."""

    def __init__(
        self, timeout: float = DEFAULT_TIMEOUT_SECONDS, session: aiohttp.ClientSession | None = None
    ) -> None:
        self.timeout = timeout
        self.session = session

    async def fetch_nightly(
        self, latitude: float, longitude: float, timezone: str = "auto"
    ) -> dict[str, NightWeather]:
        return await fetch_nightly_weather(
            latitude, longitude, timezone=timezone, session=self.session, timeout=self.timeout
        )


async def fetch_nightly_weather_safe(
    provider: WeatherProvider, latitude: float, longitude: float, timezone: str = "auto"
) -> tuple[dict[str, NightWeather], bool]:
    """
    Fetch nightly weather, degrading to "no weather data" on failure.

    Returns:
        Tuple of (nightly weather, fetched). On any weather failure the mapping
        is empty and ``fetched`` is False.
    """
    try:
        return await provider.fetch_nightly(latitude, longitude, timezone), True
    except (WeatherError, TimeoutError) as e:
        logger.warning(f"Weather fetch failed for ({latitude:.4f}, {longitude:.4f}): {e}")
        return {}, False
