"""
Alternative and optimal slot suggestions.

All strategies here are first-fit over an explicit window order, so the
same inputs always give the same suggestions:
- suggest_alternatives: re-anchor a failed lesson at each window start
- pack_back_to_back: tile a window with zero-gap lessons
- find_optimal_slots: slide through windows, skipping student commitments
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from lessonengine.config import (
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_MAX_ALTERNATIVES,
    DEFAULT_MAX_OPTIMAL_SLOTS,
)
from lessonengine.data.models import AvailabilityWindow, TimeSlot
from lessonengine.errors import EmptyAvailabilityError, InvalidDurationError
from lessonengine.intervals import collides, to_minutes

from .generator import candidate_id, validate_duration

logger = logging.getLogger(__name__)


def _require_windows(windows: Sequence[AvailabilityWindow], operation: str) -> None:
    if not windows:
        raise EmptyAvailabilityError(f"{operation} needs at least one availability window")


def suggest_alternatives(
    failed_slot: TimeSlot,
    teacher_availability: Sequence[AvailabilityWindow],
    existing_bookings: Sequence[TimeSlot],
    max_results: int = DEFAULT_MAX_ALTERNATIVES,
) -> list[TimeSlot]:
    """
    Suggest replacement slots for a lesson that could not be booked.

    Each window long enough for the lesson offers one candidate anchored at
    its start. Candidates that collide with an existing booking are dropped.
    Window order is kept; there is no further ranking.

    Args:
        failed_slot: The slot that had a conflict
        teacher_availability: The teacher's active windows, in preference order
        existing_bookings: Bookings to avoid
        max_results: Maximum number of suggestions

    Returns:
        Up to max_results alternative slots

    Raises:
        EmptyAvailabilityError: If no windows are given
    """
    _require_windows(teacher_availability, "suggest_alternatives")

    duration = failed_slot.duration_minutes
    suggestions: list[TimeSlot] = []

    for window in teacher_availability:
        if len(suggestions) >= max_results:
            break
        if window.duration_minutes < duration:
            continue

        candidate = TimeSlot(
            id=candidate_id(window.id, duration, window.start_minutes),
            day=window.day,
            start_minutes=window.start_minutes,
            end_minutes=window.start_minutes + duration,
            location=window.location,
            owner_id=window.owner_id,
            subject_id=failed_slot.subject_id,
        )
        if any(collides(candidate, booking) for booking in existing_bookings):
            continue
        suggestions.append(candidate)

    logger.debug("Suggested %d alternatives for %s", len(suggestions), failed_slot)
    return suggestions


def pack_back_to_back(window: AvailabilityWindow, duration: int) -> list[TimeSlot]:
    """
    Tile a window with consecutive lessons and no gaps.

    A remainder shorter than one lesson is left unscheduled.

    Example:
        A 09:00-10:30 window with 45-minute lessons gives
        09:00-09:45 and 09:45-10:30.

    Raises:
        InvalidDurationError: If duration is not positive
    """
    validate_duration(duration)

    count = window.duration_minutes // duration
    slots: list[TimeSlot] = []
    start = window.start_minutes

    for _ in range(count):
        slots.append(TimeSlot(
            id=candidate_id(window.id, duration, start),
            day=window.day,
            start_minutes=start,
            end_minutes=start + duration,
            location=window.location,
            owner_id=window.owner_id,
        ))
        start += duration

    return slots


def generate_back_to_back_suggestions(
    teacher_availability: Sequence[AvailabilityWindow],
    duration: int,
    min_lessons: int = 2,
) -> list[TimeSlot]:
    """Pack every window that holds at least min_lessons lessons."""
    validate_duration(duration)

    suggestions: list[TimeSlot] = []
    for window in teacher_availability:
        if window.duration_minutes // duration >= min_lessons:
            suggestions.extend(pack_back_to_back(window, duration))
    return suggestions


def order_windows(
    windows: Sequence[AvailabilityWindow],
    preferred_start_times: Sequence[str] = (),
) -> list[AvailabilityWindow]:
    """
    Order windows for first-fit search.

    Windows whose start matches a preferred time come first, in the order
    of the preferences. The rest follow by start time, then by day; any
    remaining ties keep input order.
    """
    preference_rank = {}
    for rank, time_str in enumerate(preferred_start_times):
        preference_rank.setdefault(to_minutes(time_str), rank)

    def sort_key(window: AvailabilityWindow) -> tuple[int, int, int]:
        rank = preference_rank.get(window.start_minutes)
        if rank is not None:
            return (0, rank, 0)
        return (1, window.start_minutes, window.day)

    return sorted(windows, key=sort_key)


def find_optimal_slots(
    teacher_availability: Sequence[AvailabilityWindow],
    student_commitments: Sequence[TimeSlot],
    duration: int,
    preferred_start_times: Sequence[str] = (),
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
    max_results: int = DEFAULT_MAX_OPTIMAL_SLOTS,
) -> list[TimeSlot]:
    """
    Find slots where both the teacher is available and the student is free.

    Within a window, consecutive candidates are spaced by duration plus the
    buffer. The buffer only separates generated candidates; it is not kept
    around the student's commitments.

    Args:
        teacher_availability: The teacher's active windows
        student_commitments: Everything the student is already committed to
        duration: Lesson length in minutes
        preferred_start_times: 'HH:MM' starts to try first
        buffer_minutes: Spacing between candidates in one window
        max_results: Maximum number of suggestions

    Returns:
        Up to max_results candidate slots

    Raises:
        EmptyAvailabilityError: If no windows are given
        InvalidDurationError: If duration is not positive or buffer is negative
        MalformedTimeError: If a preferred start time is malformed
    """
    _require_windows(teacher_availability, "find_optimal_slots")
    validate_duration(duration)
    if buffer_minutes < 0:
        raise InvalidDurationError(f"Buffer must not be negative, got {buffer_minutes}")

    suggestions: list[TimeSlot] = []

    for window in order_windows(teacher_availability, preferred_start_times):
        if window.duration_minutes < duration:
            continue

        start = window.start_minutes
        while start + duration <= window.end_minutes:
            candidate = TimeSlot(
                id=candidate_id(window.id, duration, start),
                day=window.day,
                start_minutes=start,
                end_minutes=start + duration,
                location=window.location,
                owner_id=window.owner_id,
            )
            if not any(collides(candidate, c) for c in student_commitments):
                suggestions.append(candidate)
                if len(suggestions) >= max_results:
                    return suggestions
            start += duration + buffer_minutes

    return suggestions
