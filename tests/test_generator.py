"""Tests for candidate slot generation."""

from __future__ import annotations

import logging

import pytest

from lessonengine.data.models import AvailabilityWindow, Booking
from lessonengine.errors import InvalidDurationError
from lessonengine.intervals import collides, fits_within
from lessonengine.scheduling.generator import (
    SlotGenerator,
    candidate_id,
    generate_for_windows,
    generate_slots,
    validate_duration,
)


@pytest.fixture
def monday_window() -> AvailabilityWindow:
    """Monday 15:00-16:30 for teacher t1."""
    return AvailabilityWindow(id="w1", owner_id="t1", day=1, start_minutes="15:00", end_minutes="16:30",
                              location="Room5")


@pytest.fixture
def existing_lesson() -> Booking:
    """Monday 15:00-15:45 with teacher t1."""
    return Booking(id="b1", owner_id="t1", subject_id="s1", day=1, start_minutes="15:00", duration_minutes=45)


class TestValidateDuration:
    """Tests for duration validation."""

    @pytest.mark.parametrize("value", [0, -15, 1440, 2.5, True, "45"])
    def test_invalid(self, value):
        with pytest.raises(InvalidDurationError):
            validate_duration(value)

    def test_valid(self):
        validate_duration(45)  # Should not raise


class TestGenerateSlots:
    """Tests for generate_slots."""

    def test_only_free_slot_after_existing_lesson(self, monday_window, existing_lesson):
        slots = generate_slots(
            monday_window, [existing_lesson], allowed_durations=[45], sample_step_minutes=45
        )
        assert [s.start_time for s in slots] == ["15:45"]
        assert slots[0].end_time == "16:30"

    def test_sliding_candidates(self, monday_window):
        slots = generate_slots(monday_window, allowed_durations=[45], sample_step_minutes=15)
        assert [s.start_time for s in slots] == ["15:00", "15:15", "15:30", "15:45"]

    def test_every_slot_fits_and_avoids_bookings(self, monday_window, existing_lesson):
        slots = generate_slots(monday_window, [existing_lesson])
        assert slots
        for s in slots:
            assert fits_within(s, monday_window)
            assert not collides(s, existing_lesson)
            assert s.duration_minutes in (30, 45, 60)

    def test_sorted_by_start_with_duration_order_kept(self, monday_window):
        slots = generate_slots(monday_window, allowed_durations=[60, 30])
        starts = [s.start_minutes for s in slots]
        assert starts == sorted(starts)
        # Equal starts keep allowed_durations order
        assert [s.duration_minutes for s in slots[:2]] == [60, 30]

    def test_idempotent(self, monday_window, existing_lesson):
        first = generate_slots(monday_window, [existing_lesson])
        second = generate_slots(monday_window, [existing_lesson])
        assert first == second

    def test_candidate_ids(self, monday_window):
        slots = generate_slots(monday_window, allowed_durations=[45], sample_step_minutes=45)
        assert [s.id for s in slots] == ["w1:45:1500", "w1:45:1545"]
        assert candidate_id("w1", 30, 945) == "w1:30:1545"

    def test_slots_inherit_window_details(self, monday_window):
        s = generate_slots(monday_window, allowed_durations=[30])[0]
        assert s.day == 1
        assert s.location == "Room5"
        assert s.owner_id == "t1"

    def test_window_shorter_than_duration(self):
        short = AvailabilityWindow(id="w2", owner_id="t1", day=1, start_minutes="09:00", end_minutes="09:30")
        assert generate_slots(short, allowed_durations=[45]) == []

    def test_other_teacher_and_day_do_not_block(self, monday_window):
        others = [
            Booking(owner_id="t2", subject_id="s1", day=1, start_minutes="15:00", duration_minutes=60),
            Booking(owner_id="t1", subject_id="s1", day=2, start_minutes="15:00", duration_minutes=60),
        ]
        slots = generate_slots(monday_window, others, allowed_durations=[45], sample_step_minutes=45)
        assert len(slots) == 2

    def test_carved_bookings_block(self, existing_lesson):
        window = AvailabilityWindow(id="w1", owner_id="t1", day=1, start_minutes="15:00",
                                    end_minutes="16:30", bookings=[existing_lesson])
        slots = generate_slots(window, allowed_durations=[45], sample_step_minutes=45)
        assert [s.start_time for s in slots] == ["15:45"]

    def test_inactive_window_yields_nothing(self):
        window = AvailabilityWindow(id="w1", owner_id="t1", day=1, start_minutes="15:00",
                                    end_minutes="16:30", is_active=False)
        assert generate_slots(window) == []

    def test_invalid_duration_isolated(self, monday_window, caplog):
        with caplog.at_level(logging.WARNING, logger="lessonengine.scheduling.generator"):
            slots = generate_slots(monday_window, allowed_durations=[45, -5], sample_step_minutes=45)
        assert len(slots) == 2
        assert "skipped duration -5" in caplog.text

    def test_all_durations_invalid_raises(self, monday_window):
        with pytest.raises(InvalidDurationError):
            generate_slots(monday_window, allowed_durations=[0, -5])

    def test_invalid_step(self, monday_window):
        with pytest.raises(InvalidDurationError):
            generate_slots(monday_window, sample_step_minutes=0)


class TestSlotGenerator:
    """Tests for the generator class."""

    def test_failures_reported(self, monday_window):
        result = SlotGenerator(allowed_durations=[30, 0]).generate(monday_window)
        assert not result.ok
        assert set(result.failures) == {0}
        assert all(s.duration_minutes == 30 for s in result.slots)


class TestGenerateForWindows:
    """Tests for multi-window generation."""

    def test_ordered_by_day_then_start(self):
        windows = [
            AvailabilityWindow(id="tue", owner_id="t1", day=2, start_minutes="09:00", end_minutes="10:00"),
            AvailabilityWindow(id="mon", owner_id="t1", day=1, start_minutes="16:00", end_minutes="17:00"),
        ]
        slots = generate_for_windows(windows, allowed_durations=[60])
        assert [(s.day, s.start_time) for s in slots] == [(1, "16:00"), (2, "09:00")]
