"""
Custom exception classes for OwlTrek night forecasting.

This module defines specific exceptions for the different kinds of errors
that can occur while planning nights: bad caller configuration, missing
ephemeris data and upstream weather failures.
"""

from __future__ import annotations


__all__ = [
    # Configuration exceptions
    "ConfigurationError",
    # Ephemeris exceptions
    "EphemerisError",
    "InvalidCoordinateError",
    "InvalidTimezoneError",
    # Base exception
    "OwlTrekError",
    # Weather exceptions
    "WeatherError",
    "WeatherFetchError",
    "WeatherFormatError",
]


class OwlTrekError(Exception):
    """
    Base exception for all OwlTrek errors.

    All custom exceptions in this library inherit from this base class,
    making it easy to catch every forecasting-related error.
    """

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(OwlTrekError):
    """
    Base exception for caller configuration errors.

    Configuration errors are never retried: the same input fails the same way.
    """

    pass


class InvalidTimezoneError(ConfigurationError):
    """
    Raised when a timezone identifier is not a known IANA zone.

    This occurs when:
    - The identifier is misspelled (e.g. "America/Los_Angles")
    - The identifier is empty
    - No timezone can be found for a pair of coordinates (open ocean)
    """

    pass


class InvalidCoordinateError(ConfigurationError):
    """
    Raised when coordinates are out of valid range.

    This occurs when attempting to use coordinates that are:
    - Latitude outside -90 to +90 degrees range
    - Longitude outside -180 to +180 degrees range
    """

    pass


# ============================================================================
# Ephemeris Exceptions
# ============================================================================


class EphemerisError(OwlTrekError):
    """Raised when the JPL ephemeris cannot be loaded or downloaded."""

    pass


# ============================================================================
# Weather Exceptions
# ============================================================================


class WeatherError(OwlTrekError):
    """Base exception for weather forecast errors."""

    pass


class WeatherFetchError(WeatherError):
    """
    Raised when the weather forecast cannot be fetched.

    This can occur when:
    - The API returns a non-200 status
    - The network is unreachable
    - The request times out
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class WeatherFormatError(WeatherError):
    """Raised when the weather API response cannot be parsed."""

    pass
