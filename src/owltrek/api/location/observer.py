"""
Observer Location Management

Manages the observer's geographic location and timezone, persisted as a
small JSON config file so the CLI remembers where forecasts are for.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import deal

from owltrek.api.core.exceptions import ConfigurationError, InvalidTimezoneError
from owltrek.api.core.utils import get_timezone_name, get_zone, validate_coordinates


logger = logging.getLogger(__name__)


__all__ = [
    "DEFAULT_LOCATION",
    "ObserverLocation",
    "clear_observer_location",
    "get_config_path",
    "get_observer_location",
    "load_location",
    "make_location",
    "resolve_timezone_for",
    "save_location",
    "set_observer_location",
    "validate_location",
]


@dataclass(frozen=True)
class ObserverLocation:
    """Observer's geographic location."""

    latitude: float  # Degrees north (negative for south)
    longitude: float  # Degrees east (negative for west)
    timezone: str  # IANA zone id
    name: str | None = None  # Optional location name

    @property
    def display_name(self) -> str:
        return self.name or f"{self.latitude:.4f}°, {self.longitude:.4f}°"


# Default location (San Marcos, California)
DEFAULT_LOCATION = ObserverLocation(
    latitude=33.159586,
    longitude=-117.067950,
    timezone="America/Los_Angeles",
    name="San Marcos, CA (default)",
)

# Global current location
_current_location: ObserverLocation | None = None


def validate_location(location: ObserverLocation) -> None:
    """
    Check a location's coordinates and timezone.

    Raises:
        InvalidCoordinateError: If coordinates are out of range
        InvalidTimezoneError: If the timezone is unknown
    """
    validate_coordinates(location.latitude, location.longitude)
    get_zone(location.timezone)


def resolve_timezone_for(latitude: float, longitude: float) -> str:
    """
    Find the IANA timezone covering a coordinate.

    Raises:
        InvalidCoordinateError: If coordinates are out of range
        InvalidTimezoneError: If no timezone covers the point
    """
    validate_coordinates(latitude, longitude)
    tz_name = get_timezone_name(latitude, longitude)
    if not tz_name:
        raise InvalidTimezoneError(f"No timezone found for ({latitude:.4f}, {longitude:.4f}); pass one explicitly")
    return tz_name


def make_location(
    latitude: float, longitude: float, timezone: str | None = None, name: str | None = None
) -> ObserverLocation:
    """
    Build a validated location, looking up the timezone when not given.
    """
    if timezone is None:
        timezone = resolve_timezone_for(latitude, longitude)
        logger.debug(f"Resolved timezone {timezone} for ({latitude:.4f}, {longitude:.4f})")
    location = ObserverLocation(latitude=latitude, longitude=longitude, timezone=timezone, name=name)
    validate_location(location)
    return location


def get_config_path() -> Path:
    """Get path to observer location config file."""
    # OWLTREK_CONFIG_DIR overrides the per-user config directory
    configured = os.environ.get("OWLTREK_CONFIG_DIR")
    config_dir = Path(configured).expanduser() if configured else Path.home() / ".config" / "owltrek"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "observer_location.json"


@deal.pre(lambda location: location is not None, message="Location must be provided")  # type: ignore[misc,arg-type]
@deal.pre(lambda location: -90 <= location.latitude <= 90, message="Latitude must be -90 to +90")  # type: ignore[misc,arg-type]
@deal.pre(lambda location: -180 <= location.longitude <= 180, message="Longitude must be -180 to +180")  # type: ignore[misc,arg-type]
@deal.post(lambda result: result is None, message="Save must complete")
def save_location(location: ObserverLocation) -> None:
    """
    Save observer location to config file.

    Args:
        location: Observer location to save
    """
    config_path = get_config_path()
    logger.info(
        f"Saving observer location: {location.name or 'Unnamed'} ({location.latitude:.4f}, {location.longitude:.4f})"
    )

    data = {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "timezone": location.timezone,
        "name": location.name,
    }

    with config_path.open("w") as f:
        json.dump(data, f, indent=2)

    logger.debug(f"Location saved to {config_path}")


@deal.post(lambda result: result is not None, message="Location must be returned")
def load_location() -> ObserverLocation:
    """
    Load observer location from config file.

    Returns:
        Saved observer location, or default if not configured or unreadable
    """
    config_path = get_config_path()

    if not config_path.exists():
        logger.debug(f"No saved location found at {config_path}")
        return DEFAULT_LOCATION

    try:
        with config_path.open("r") as f:
            data = json.load(f)

        # Validate required fields
        if "latitude" not in data or "longitude" not in data:
            raise KeyError("Missing required fields: latitude and/or longitude")

        location = make_location(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            timezone=data.get("timezone"),
            name=data.get("name"),
        )
        logger.info(
            f"Loaded observer location: {location.name or 'Unnamed'} ({location.latitude:.4f}, {location.longitude:.4f})"
        )
        return location
    except (json.JSONDecodeError, KeyError, ValueError, TypeError, ConfigurationError) as e:
        # If config is corrupted or invalid, return default
        logger.warning(f"Failed to load location from {config_path}: {e}. Using default location.")
        return DEFAULT_LOCATION


@deal.post(lambda result: result is not None, message="Observer location must be returned")
def get_observer_location() -> ObserverLocation:
    """
    Get current observer location.

    Returns cached location if set, otherwise loads from config.
    """
    global _current_location

    if _current_location is None:
        _current_location = load_location()

    return _current_location


def set_observer_location(location: ObserverLocation, save: bool = True) -> None:
    """
    Set current observer location.

    Args:
        location: New observer location
        save: Whether to save to config file (default: True)

    Raises:
        InvalidCoordinateError: If coordinates are out of range
        InvalidTimezoneError: If the timezone is unknown
    """
    global _current_location
    validate_location(location)
    _current_location = location

    if save:
        save_location(location)


def clear_observer_location(delete_config: bool = False) -> None:
    """
    Clear cached observer location (will reload from config on next access).

    Args:
        delete_config: Also remove the saved config file
    """
    global _current_location
    _current_location = None

    if delete_config:
        config_path = get_config_path()
        if config_path.exists():
            config_path.unlink()
            logger.info(f"Removed saved location {config_path}")
