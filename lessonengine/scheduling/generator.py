"""
Candidate slot generation from availability windows.

For each allowed duration, a candidate start slides from the window start
to the last start that still fits, in fixed sampling steps. Candidates that
collide with an existing booking of the same teacher are dropped.

The sampling step is finer than the lesson lengths, so candidate starts
need not line up with window boundaries or with each other.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from lessonengine.config import DEFAULT_SAMPLE_STEP_MINUTES, LESSON_DURATIONS
from lessonengine.data.models import AvailabilityWindow, TimeSlot
from lessonengine.errors import InvalidDurationError
from lessonengine.intervals import MINUTES_PER_DAY, collides, to_time_string

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Slots produced for a window, plus per-duration failures."""
    slots: list[TimeSlot] = field(default_factory=list)
    failures: dict[int, InvalidDurationError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def candidate_id(window_id: str, duration: int, start_minutes: int) -> str:
    """Deterministic identity for a generated candidate."""
    return f"{window_id}:{duration}:{to_time_string(start_minutes).replace(':', '')}"


def validate_duration(duration: int) -> None:
    """
    Check a lesson duration.

    Raises:
        InvalidDurationError: If not a positive int or at least a full day
    """
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise InvalidDurationError(f"Duration must be a positive number of minutes, got {duration!r}")
    if duration >= MINUTES_PER_DAY:
        raise InvalidDurationError(f"Duration {duration} crosses midnight")


def _same_owner(window: AvailabilityWindow, booking: TimeSlot) -> bool:
    return booking.owner_id is None or booking.owner_id == window.owner_id


class SlotGenerator:
    """
    Generates candidate lesson slots for availability windows.

    Usage:
        generator = SlotGenerator(allowed_durations=[30, 45, 60])
        result = generator.generate(window, existing_bookings)
        for slot in result.slots:
            ...
    """

    def __init__(
        self,
        allowed_durations: Sequence[int] = LESSON_DURATIONS,
        sample_step_minutes: int = DEFAULT_SAMPLE_STEP_MINUTES,
    ):
        if isinstance(sample_step_minutes, bool) or not isinstance(sample_step_minutes, int) \
                or sample_step_minutes <= 0:
            raise InvalidDurationError(
                f"Sampling step must be a positive number of minutes, got {sample_step_minutes!r}"
            )
        self.allowed_durations = list(allowed_durations)
        self.sample_step_minutes = sample_step_minutes

    def generate(
        self,
        window: AvailabilityWindow,
        existing_bookings: Iterable[TimeSlot] = (),
    ) -> GenerationResult:
        """
        Generate candidates for one window.

        Invalid durations are recorded in the result and do not stop the
        other durations from being generated.

        Args:
            window: An active availability window
            existing_bookings: Bookings to avoid (the window's own bookings are added)

        Returns:
            GenerationResult with slots ordered by start time
        """
        result = GenerationResult()

        if not window.is_active:
            logger.debug("Skipping inactive window %s", window.id)
            return result

        blockers = [
            b for b in [*existing_bookings, *window.bookings]
            if b.day == window.day and _same_owner(window, b)
        ]

        for duration in self.allowed_durations:
            try:
                validate_duration(duration)
            except InvalidDurationError as e:
                result.failures[duration] = e
                continue
            result.slots.extend(self._slots_for_duration(window, blockers, duration))

        # Stable: equal starts keep the order of allowed_durations
        result.slots.sort(key=lambda s: s.start_minutes)

        logger.debug(
            "Window %s: %d candidates, %d failed durations",
            window.id, len(result.slots), len(result.failures),
        )
        return result

    def _slots_for_duration(
        self,
        window: AvailabilityWindow,
        blockers: list[TimeSlot],
        duration: int,
    ) -> list[TimeSlot]:
        """Slide a candidate of one duration across the window."""
        slots: list[TimeSlot] = []
        last_start = window.end_minutes - duration

        for start in range(window.start_minutes, last_start + 1, self.sample_step_minutes):
            candidate = TimeSlot(
                id=candidate_id(window.id, duration, start),
                day=window.day,
                start_minutes=start,
                end_minutes=start + duration,
                location=window.location,
                owner_id=window.owner_id,
            )
            if not any(collides(candidate, b) for b in blockers):
                slots.append(candidate)

        return slots


def generate_slots(
    window: AvailabilityWindow,
    existing_bookings: Iterable[TimeSlot] = (),
    allowed_durations: Sequence[int] = LESSON_DURATIONS,
    sample_step_minutes: int = DEFAULT_SAMPLE_STEP_MINUTES,
) -> list[TimeSlot]:
    """
    Generate every legal candidate slot in a window.

    Same inputs always give the same candidates in the same order.

    Args:
        window: An active availability window
        existing_bookings: Committed bookings to avoid
        allowed_durations: Lesson lengths to generate
        sample_step_minutes: Distance between candidate starts

    Returns:
        Candidate slots ordered by start time

    Raises:
        InvalidDurationError: If the step is invalid, or every duration is
    """
    generator = SlotGenerator(allowed_durations, sample_step_minutes)
    result = generator.generate(window, existing_bookings)

    for duration, error in result.failures.items():
        logger.warning("Window %s: skipped duration %r: %s", window.id, duration, error)

    if result.failures and len(result.failures) == len(set(generator.allowed_durations)):
        raise next(iter(result.failures.values()))

    return result.slots


def generate_for_windows(
    windows: Iterable[AvailabilityWindow],
    existing_bookings: Sequence[TimeSlot] = (),
    allowed_durations: Sequence[int] = LESSON_DURATIONS,
    sample_step_minutes: int = DEFAULT_SAMPLE_STEP_MINUTES,
) -> list[TimeSlot]:
    """Generate candidates for several windows, ordered by day then start."""
    slots: list[TimeSlot] = []
    for window in windows:
        slots.extend(generate_slots(window, existing_bookings, allowed_durations, sample_step_minutes))
    slots.sort(key=lambda s: (s.day, s.start_minutes))
    return slots
