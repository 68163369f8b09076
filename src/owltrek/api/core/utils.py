"""
Utility functions for timezone handling, coordinate validation and
local-time display formatting.

All instants handled by the library are timezone-aware. Naive datetimes are
interpreted as UTC, never as host-local time, so results never depend on
where the process runs.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timezonefinder import TimezoneFinder

from owltrek.api.core.constants import MAX_LATITUDE, MAX_LONGITUDE, MIN_LATITUDE, MIN_LONGITUDE
from owltrek.api.core.exceptions import InvalidCoordinateError, InvalidTimezoneError


logger = logging.getLogger(__name__)


__all__ = [
    "ensure_utc",
    "format_date_in_timezone",
    "format_date_string",
    "format_local_time",
    "format_time_in_timezone",
    "get_local_timezone",
    "get_timezone_name",
    "get_zone",
    "validate_coordinates",
]

# Global timezone finder instance (cached for performance)
_tz_finder = TimezoneFinder()


def get_zone(timezone: str) -> ZoneInfo:
    """
    Resolve an IANA timezone identifier.

    Args:
        timezone: IANA zone id (e.g. "America/Los_Angeles")

    Returns:
        ZoneInfo for the identifier

    Raises:
        InvalidTimezoneError: If the identifier is empty or unknown
    """
    if not timezone or not isinstance(timezone, str):
        raise InvalidTimezoneError(f"Invalid timezone: {timezone!r}")
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        # ValueError: malformed keys such as absolute paths
        raise InvalidTimezoneError(f"Unknown timezone: {timezone!r}") from e


def validate_coordinates(latitude: float, longitude: float) -> None:
    """
    Check that a coordinate pair is on the globe.

    Raises:
        InvalidCoordinateError: If latitude is outside -90..90 or longitude outside -180..180
    """
    # Written as "not in range" so NaN is rejected too
    if not MIN_LATITUDE <= latitude <= MAX_LATITUDE:
        raise InvalidCoordinateError(f"Invalid latitude: {latitude} (must be -90 to 90)")
    if not MIN_LONGITUDE <= longitude <= MAX_LONGITUDE:
        raise InvalidCoordinateError(f"Invalid longitude: {longitude} (must be -180 to 180)")


def ensure_utc(dt: datetime) -> datetime:
    """Return an aware datetime, treating naive values as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def get_timezone_name(lat: float, lon: float) -> str | None:
    """
    Look up the IANA timezone name for a coordinate.

    Returns:
        Zone name, or None if no timezone covers the point (e.g. open ocean)
    """
    try:
        return _tz_finder.timezone_at(lat=lat, lng=lon)
    except ValueError as e:
        # Raised for coordinates outside the valid range
        logger.debug(f"Timezone lookup failed for ({lat}, {lon}): {e}")
        return None


def get_local_timezone(lat: float, lon: float) -> ZoneInfo | None:
    """
    Get timezone for a given latitude and longitude.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        ZoneInfo object for the timezone, or None if timezone cannot be determined
    """
    tz_name = get_timezone_name(lat, lon)
    if tz_name:
        return ZoneInfo(tz_name)
    return None


def format_date_string(dt: datetime, timezone: str) -> str:
    """Canonical local calendar date, e.g. "2024-12-16"."""
    return ensure_utc(dt).astimezone(get_zone(timezone)).strftime("%Y-%m-%d")


def format_time_in_timezone(dt: datetime | None, timezone: str) -> str:
    """
    Format an instant as a local clock time.

    Example: "7:45 PM". Missing instants (no moonrise that day) format as "N/A".
    """
    if dt is None:
        return "N/A"
    local_dt = ensure_utc(dt).astimezone(get_zone(timezone))
    hour = local_dt.hour % 12 or 12
    return f"{hour}:{local_dt:%M %p}"


def format_date_in_timezone(dt: datetime, timezone: str) -> str:
    """Format an instant as a short local date, e.g. "Mon, Dec 16"."""
    local_dt = ensure_utc(dt).astimezone(get_zone(timezone))
    return f"{local_dt:%a, %b} {local_dt.day}"


def format_local_time(dt: datetime, lat: float, lon: float) -> str:
    """
    Format datetime in local timezone, falling back to UTC if timezone unavailable.

    Args:
        dt: Datetime to format (assumed UTC if no timezone info)
        lat: Observer latitude in degrees
        lon: Observer longitude in degrees

    Returns:
        Formatted time string (e.g., "2024-10-14 08:30 PM PDT" or "2024-10-14 08:30 PM UTC")
    """
    dt = ensure_utc(dt)

    tz = get_local_timezone(lat, lon)
    if tz:
        local_dt = dt.astimezone(tz)
        tz_name = local_dt.tzname() or tz.key
        return local_dt.strftime(f"%Y-%m-%d %I:%M %p {tz_name}")
    else:
        return dt.astimezone(UTC).strftime("%Y-%m-%d %I:%M %p UTC")
