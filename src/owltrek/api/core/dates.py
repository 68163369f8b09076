"""
Candidate Night Generation

Produces the sequence of local midnights that a forecast covers.

The server usually runs in UTC but "today" has to be the observer's today.
If it is Monday 11 PM in Los Angeles (Tuesday 7 AM UTC), the window starts
on Monday. Every day's midnight is computed from that date's own zone rules,
so windows that cross a daylight-saving change stay one calendar day apart
(a 23 or 25 hour step) instead of drifting by an hour.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import deal

from owltrek.api.core.constants import WEATHER_FORECAST_DAYS
from owltrek.api.core.utils import ensure_utc, get_zone


logger = logging.getLogger(__name__)

__all__ = [
    "days_between",
    "generate_candidate_nights",
    "get_next_week",
    "local_today",
    "start_of_local_day",
]


def start_of_local_day(day: date, tz: ZoneInfo) -> datetime:
    """
    Get the first instant of a local calendar day.

    When midnight is skipped by a DST jump the first existing instant of the
    day is returned (e.g. 01:00). When midnight happens twice the earlier
    instant is returned.

    Args:
        day: Local calendar date
        tz: Zone the date belongs to

    Returns:
        Aware datetime in ``tz``
    """
    # fold=0 resolves a gap with the pre-transition offset, which lands on
    # the transition instant once normalized through UTC
    midnight = datetime.combine(day, time.min, tzinfo=tz)
    return midnight.astimezone(UTC).astimezone(tz)


def local_today(timezone: str, now: datetime | None = None) -> date:
    """Calendar date of ``now`` in ``timezone`` (defaults to the current time)."""
    tz = get_zone(timezone)
    if now is None:
        now = datetime.now(UTC)
    return ensure_utc(now).astimezone(tz).date()


@deal.pre(lambda timezone, count, now=None: count >= 1, message="Count must be at least 1")  # type: ignore[misc,arg-type]
@deal.post(lambda result: all(a < b for a, b in zip(result, result[1:])), message="Nights must be increasing")
def generate_candidate_nights(timezone: str, count: int, now: datetime | None = None) -> list[datetime]:
    """
    Get ``count`` consecutive local midnights starting from local "today".

    Args:
        timezone: IANA zone id of the observer
        count: Number of nights (at least 1)
        now: Frozen reference instant (default: current time, read once)

    Returns:
        Aware datetimes in the observer's zone, one per local calendar day

    Raises:
        InvalidTimezoneError: If ``timezone`` is unknown
    """
    tz = get_zone(timezone)
    today = local_today(timezone, now)
    nights = [start_of_local_day(today + timedelta(days=i), tz) for i in range(count)]
    logger.debug(f"Generated {count} candidate nights for {timezone} starting {today.isoformat()}")
    return nights


def get_next_week(timezone: str, now: datetime | None = None) -> list[datetime]:
    """
    Get the next 7 nights starting from local "today".

    Limited to 7 days because weather forecast accuracy degrades beyond that.
    """
    return generate_candidate_nights(timezone, WEATHER_FORECAST_DAYS, now)


def days_between(start: datetime, end: datetime, timezone: str) -> int:
    """Number of local calendar days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    tz = get_zone(timezone)
    start_date = ensure_utc(start).astimezone(tz).date()
    end_date = ensure_utc(end).astimezone(tz).date()
    return (end_date - start_date).days
