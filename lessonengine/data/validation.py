"""
Consistency checks for declared availability.

Validates a teacher's time blocks before they are used for scheduling:
- Windows of one teacher must not overlap on the same day
- Bookings carved out of a window must lie inside it and not overlap each other
- Windows too short for any lesson are flagged
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from lessonengine.config import LESSON_DURATIONS
from lessonengine.intervals import fits_within

from .models import AvailabilityWindow


@dataclass
class WindowOverlap:
    """Two windows of the same teacher sharing time on one day."""
    first: AvailabilityWindow
    second: AvailabilityWindow

    @property
    def overlap_minutes(self) -> int:
        start = max(self.first.start_minutes, self.second.start_minutes)
        end = min(self.first.end_minutes, self.second.end_minutes)
        return max(0, end - start)


@dataclass
class ValidationResult:
    """Outcome of availability validation."""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    conflicts: list[WindowOverlap] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_availability(
    windows: Sequence[AvailabilityWindow],
    min_duration: int = min(LESSON_DURATIONS),
) -> ValidationResult:
    """
    Validate a set of availability windows.

    Args:
        windows: Windows to check (any number of teachers)
        min_duration: Shortest lesson length; shorter windows get a warning

    Returns:
        ValidationResult with errors, warnings and overlapping window pairs
    """
    result = ValidationResult()

    by_teacher_day: dict[tuple[str, int], list[AvailabilityWindow]] = defaultdict(list)
    for window in windows:
        by_teacher_day[(window.owner_id, window.day)].append(window)

        if not window.is_active:
            result.warnings.append(f"Window {window.id} is inactive and will be ignored")

        if window.duration_minutes < min_duration:
            result.warnings.append(
                f"Window {window.id} ({window}) is shorter than the shortest lesson ({min_duration} min)"
            )

        _check_carved_bookings(window, result)

    for (teacher_id, _day), day_windows in by_teacher_day.items():
        ordered = sorted(day_windows, key=lambda w: w.start_minutes)
        for i, first in enumerate(ordered):
            for second in ordered[i + 1:]:
                if second.start_minutes >= first.end_minutes:
                    break
                overlap = WindowOverlap(first=first, second=second)
                result.conflicts.append(overlap)
                result.errors.append(
                    f"Teacher {teacher_id}: windows {first.id} and {second.id} overlap "
                    f"by {overlap.overlap_minutes} min"
                )

    return result


def _check_carved_bookings(window: AvailabilityWindow, result: ValidationResult) -> None:
    """Bookings inside a window must fit it and must not overlap one another."""
    for booking in window.bookings:
        if booking.day != window.day or not fits_within(booking, window):
            result.errors.append(
                f"Window {window.id}: booking {booking.id or booking} lies outside the window"
            )
        if booking.owner_id != window.owner_id:
            result.errors.append(
                f"Window {window.id}: booking {booking.id or booking} belongs to teacher {booking.owner_id}"
            )

    ordered = sorted(window.bookings, key=lambda b: (b.day, b.start_minutes))
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            if second.day != first.day or second.start_minutes >= first.end_minutes:
                break
            result.errors.append(
                f"Window {window.id}: bookings {first.id or first} and {second.id or second} overlap"
            )
