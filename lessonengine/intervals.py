"""
Interval arithmetic on minutes-from-midnight.

Time conventions:
- Time of day is represented as minutes from midnight (0-1439)
- An interval is half-open: [start, end)
- Days are 0-6 (Sunday-Saturday)

Example times:
- 09:00 = 540
- 12:30 = 750
- 15:45 = 945

Two intervals that merely touch (one ends exactly when the other starts)
do not overlap; they are adjacent.
"""

from __future__ import annotations

import re
from typing import Protocol

from .errors import InvalidDurationError, InvalidMinuteError, MalformedTimeError


# =============================================================================
# Constants
# =============================================================================

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440
LAST_MINUTE = MINUTES_PER_DAY - 1

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DAY_ABBREV = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

_TIME_PATTERN = re.compile(r"[0-9]{2}:[0-9]{2}")


class Interval(Protocol):
    """Anything with half-open minute bounds."""
    start_minutes: int
    end_minutes: int


class DayInterval(Interval, Protocol):
    """An interval anchored to a day of the week."""
    day: int


# =============================================================================
# Conversion
# =============================================================================

def to_minutes(time_str: str) -> int:
    """
    Convert an 'HH:MM' string to minutes from midnight.

    Args:
        time_str: 24-hour time, zero padded (e.g. '09:05')

    Returns:
        Minutes from midnight (0-1439)

    Raises:
        MalformedTimeError: If the string is not 'HH:MM' or is out of range

    Example:
        >>> to_minutes("15:45")
        945
    """
    if not isinstance(time_str, str) or not _TIME_PATTERN.fullmatch(time_str):
        raise MalformedTimeError(f"Expected time as 'HH:MM', got {time_str!r}")

    hours, minutes = map(int, time_str.split(":"))
    if hours > 23 or minutes > 59:
        raise MalformedTimeError(f"Time out of range: {time_str!r}")

    return hours * MINUTES_PER_HOUR + minutes


def to_time_string(minutes: int) -> str:
    """
    Convert minutes from midnight to an 'HH:MM' string.

    Raises:
        InvalidMinuteError: If minutes is not an int in 0-1439

    Example:
        >>> to_time_string(945)
        '15:45'
    """
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidMinuteError(f"Minute offset must be an integer, got {minutes!r}")
    if not 0 <= minutes <= LAST_MINUTE:
        raise InvalidMinuteError(f"Minute offset {minutes} outside 0-{LAST_MINUTE}")

    h, m = divmod(minutes, MINUTES_PER_HOUR)
    return f"{h:02d}:{m:02d}"


def add_minutes(time_str: str, duration: int) -> str:
    """
    Add a duration to an 'HH:MM' time.

    Never wraps past midnight: a result at or beyond 24:00 is rejected.

    Raises:
        MalformedTimeError: If time_str is malformed
        InvalidDurationError: If duration is negative or the result crosses midnight
    """
    start = to_minutes(time_str)
    if duration < 0:
        raise InvalidDurationError(f"Duration must not be negative, got {duration}")

    end = start + duration
    if end > LAST_MINUTE:
        raise InvalidDurationError(
            f"{time_str} + {duration} minutes crosses midnight"
        )
    return to_time_string(end)


def hour_label(minutes: int) -> str:
    """Format the (truncated) hour containing a minute offset, e.g. '15:00'."""
    return f"{minutes // MINUTES_PER_HOUR:02d}:00"


def day_name(day: int) -> str:
    """Get day name from index (0=Sunday)."""
    return DAY_NAMES[day] if 0 <= day < len(DAY_NAMES) else f"Day {day}"


# =============================================================================
# Predicates
# =============================================================================

def overlaps(a: Interval, b: Interval) -> bool:
    """True iff the half-open intervals share at least one minute."""
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def is_adjacent(a: Interval, b: Interval) -> bool:
    """True iff one interval ends exactly where the other starts."""
    return a.end_minutes == b.start_minutes or b.end_minutes == a.start_minutes


def collides(a: DayInterval, b: DayInterval) -> bool:
    """True iff both intervals fall on the same day and overlap."""
    return a.day == b.day and overlaps(a, b)


def fits_within(inner: Interval, outer: Interval) -> bool:
    """True iff inner lies entirely inside outer."""
    return outer.start_minutes <= inner.start_minutes and inner.end_minutes <= outer.end_minutes


__all__ = [
    "MINUTES_PER_HOUR",
    "MINUTES_PER_DAY",
    "LAST_MINUTE",
    "DAY_NAMES",
    "DAY_ABBREV",
    "Interval",
    "DayInterval",
    "to_minutes",
    "to_time_string",
    "add_minutes",
    "hour_label",
    "day_name",
    "overlaps",
    "is_adjacent",
    "collides",
    "fits_within",
]
