"""Core subpackage for shared enums, utilities, and exceptions."""

from owltrek.api.core.dates import generate_candidate_nights, get_next_week, start_of_local_day
from owltrek.api.core.utils import (
    format_date_in_timezone,
    format_local_time,
    format_time_in_timezone,
    get_local_timezone,
)


__all__ = [
    "format_date_in_timezone",
    "format_local_time",
    "format_time_in_timezone",
    "generate_candidate_nights",
    "get_local_timezone",
    "get_next_week",
    "start_of_local_day",
]
