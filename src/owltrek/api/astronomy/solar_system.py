"""
Solar System Calculations

Moon illumination, moon phase, moonrise/moonset and sunset for a night.

The night analyzer depends only on the small ``AstronomyProvider`` protocol
defined here; ``SkyfieldAstronomy`` is the production implementation backed
by the JPL DE421 ephemeris.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, NamedTuple, Protocol

from skyfield import almanac
from skyfield.api import Loader, wgs84

from owltrek.api.core.enums import MoonPhase
from owltrek.api.core.exceptions import EphemerisError
from owltrek.api.core.utils import ensure_utc


logger = logging.getLogger(__name__)

__all__ = [
    "AstronomyProvider",
    "MoonIllumination",
    "MoonTimes",
    "SkyfieldAstronomy",
    "illumination_percent",
    "moon_phase_name",
]

EPHEMERIS_FILE = "de421.bsp"

# Rise/set searches cover one day from the given instant
LOOKUP_WINDOW = timedelta(hours=24)

# Phase bins, each 1/8 wide and centered on its canonical point
_PHASE_BINS: tuple[tuple[float, MoonPhase], ...] = (
    (1 / 16, MoonPhase.NEW_MOON),
    (3 / 16, MoonPhase.WAXING_CRESCENT),
    (5 / 16, MoonPhase.FIRST_QUARTER),
    (7 / 16, MoonPhase.WAXING_GIBBOUS),
    (9 / 16, MoonPhase.FULL_MOON),
    (11 / 16, MoonPhase.WANING_GIBBOUS),
    (13 / 16, MoonPhase.LAST_QUARTER),
    (15 / 16, MoonPhase.WANING_CRESCENT),
)


class MoonIllumination(NamedTuple):
    """Lunar illumination at an instant."""

    fraction: float  # 0.0 to 1.0 (0 = new moon, 1 = full moon)
    phase: float  # 0.0 to 1.0 position in the lunar cycle (0.5 = full)


class MoonTimes(NamedTuple):
    """Moon horizon crossings within a lookup window."""

    moonrise_time: datetime | None = None  # First moonrise in window (UTC)
    moonset_time: datetime | None = None  # First moonset in window (UTC)


class AstronomyProvider(Protocol):
    """Astronomical facts needed to judge a night."""

    def moon_illumination(self, instant: datetime) -> MoonIllumination: ...

    def moon_times(self, instant: datetime, latitude: float, longitude: float) -> MoonTimes: ...

    def sunset(self, instant: datetime, latitude: float, longitude: float) -> datetime | None: ...


def moon_phase_name(phase: float) -> MoonPhase:
    """
    Map a continuous moon phase to its name.

    Phase is 0-1 where:
    0 = New Moon
    0.25 = First Quarter
    0.5 = Full Moon
    0.75 = Last Quarter

    Values wrap, so both 0 and values approaching 1 are "New Moon".
    """
    phase = phase % 1.0
    for upper, name in _PHASE_BINS:
        if phase < upper:
            return name
    return MoonPhase.NEW_MOON


def illumination_percent(fraction: float) -> int:
    """
    Convert an illumination fraction to a whole percent, rounding halves up.

    The decimal representation of the fraction is used so that 0.955 gives
    96 even though ``0.955 * 100`` is slightly below 95.5 in binary floating point.
    """
    percent = Decimal(repr(fraction)) * 100
    return int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _get_skyfield_directory() -> Path:
    """Get the Skyfield cache directory."""
    configured = os.environ.get("OWLTREK_SKYFIELD_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".skyfield"


@lru_cache(maxsize=4)
def _get_skyfield_objects(directory: str) -> tuple[Any, Any]:
    """
    Load the Skyfield timescale and ephemeris (downloaded on first use).

    Raises:
        EphemerisError: If the ephemeris cannot be loaded or downloaded
    """
    Path(directory).mkdir(parents=True, exist_ok=True)
    loader = Loader(directory)
    try:
        ts = loader.timescale()
        eph = loader(EPHEMERIS_FILE)
    except (OSError, ValueError) as e:
        # OSError: download or file access failed
        # ValueError: corrupt ephemeris file
        raise EphemerisError(f"Failed to load {EPHEMERIS_FILE} from {directory}: {e}") from e
    logger.debug(f"Loaded Skyfield ephemeris {EPHEMERIS_FILE} from {directory}")
    return ts, eph


class SkyfieldAstronomy:
    """
    ``AstronomyProvider`` backed by Skyfield's almanac routines.

    Rise and set searches look at ``[instant, instant + 24h)``; all returned
    instants are UTC-aware datetimes.
    """

    def __init__(self, ephemeris_dir: Path | None = None) -> None:
        self._ephemeris_dir = ephemeris_dir

    def _objects(self) -> tuple[Any, Any]:
        directory = self._ephemeris_dir or _get_skyfield_directory()
        return _get_skyfield_objects(str(directory))

    def _window(self, ts: Any, instant: datetime) -> tuple[Any, Any]:
        start = ensure_utc(instant)
        return ts.from_datetime(start), ts.from_datetime(start + LOOKUP_WINDOW)

    def moon_illumination(self, instant: datetime) -> MoonIllumination:
        ts, eph = self._objects()
        t = ts.from_datetime(ensure_utc(instant))
        try:
            fraction = float(almanac.fraction_illuminated(eph, "moon", t))
            phase_angle = almanac.moon_phase(eph, t)
        except ValueError as e:
            # Skyfield raises EphemerisRangeError (a ValueError) outside 1900-2050
            raise EphemerisError(f"Moon illumination unavailable for {instant.isoformat()}: {e}") from e
        phase = (float(phase_angle.degrees) / 360.0) % 1.0
        return MoonIllumination(fraction=fraction, phase=phase)

    def moon_times(self, instant: datetime, latitude: float, longitude: float) -> MoonTimes:
        ts, eph = self._objects()
        t0, t1 = self._window(ts, instant)
        topos = wgs84.latlon(latitude, longitude)
        try:
            times, events = almanac.find_discrete(t0, t1, almanac.risings_and_settings(eph, eph["moon"], topos))
        except ValueError as e:
            raise EphemerisError(f"Moon times unavailable for {instant.isoformat()}: {e}") from e

        moonrise_time = None
        moonset_time = None
        for t, event in zip(times, events, strict=True):
            # risings_and_settings reports 1 when the body comes up, 0 when it goes down
            if event == 1 and moonrise_time is None:
                moonrise_time = t.utc_datetime()
            elif event == 0 and moonset_time is None:
                moonset_time = t.utc_datetime()
        return MoonTimes(moonrise_time=moonrise_time, moonset_time=moonset_time)

    def sunset(self, instant: datetime, latitude: float, longitude: float) -> datetime | None:
        ts, eph = self._objects()
        t0, t1 = self._window(ts, instant)
        topos = wgs84.latlon(latitude, longitude)
        try:
            times, events = almanac.find_discrete(t0, t1, almanac.sunrise_sunset(eph, topos))
        except ValueError as e:
            raise EphemerisError(f"Sunset unavailable for {instant.isoformat()}: {e}") from e

        for t, event in zip(times, events, strict=True):
            if event == 0:
                return t.utc_datetime()
        # Midnight sun or polar night
        return None
