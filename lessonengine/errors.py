"""
Error taxonomy for the scheduling engine.

All errors are local validation failures. They subclass ValueError so that
raising one inside a pydantic validator is reported as a ValidationError.
"""

from __future__ import annotations


class SchedulingError(ValueError):
    """Base class for all scheduling engine errors."""
    pass


class MalformedTimeError(SchedulingError):
    """Raised when a time string is not a valid 'HH:MM' value."""
    pass


class InvalidMinuteError(SchedulingError):
    """Raised when a minute offset is outside the range 0-1439."""
    pass


class InvalidDurationError(SchedulingError):
    """Raised when a duration is not positive or would cross midnight."""
    pass


class EmptyAvailabilityError(SchedulingError):
    """Raised when an operation needs at least one availability window."""
    pass


__all__ = [
    "SchedulingError",
    "MalformedTimeError",
    "InvalidMinuteError",
    "InvalidDurationError",
    "EmptyAvailabilityError",
]
