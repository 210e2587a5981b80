"""Tests for CP-SAT bulk placement."""

from __future__ import annotations

import pytest

from lessonengine.data.models import AvailabilityWindow, Booking, ExternalCommitment
from lessonengine.errors import EmptyAvailabilityError, InvalidDurationError
from lessonengine.intervals import collides, fits_within
from lessonengine.scheduling.bulk import BulkScheduler, LessonRequest, SolverStatus


@pytest.fixture
def monday_window() -> AvailabilityWindow:
    """Monday 15:00-16:30 for teacher t1."""
    return AvailabilityWindow(id="mon", owner_id="t1", day=1, start_minutes="15:00", end_minutes="16:30")


@pytest.fixture
def tuesday_window() -> AvailabilityWindow:
    """Tuesday 16:00-17:00 for teacher t1."""
    return AvailabilityWindow(id="tue", owner_id="t1", day=2, start_minutes="16:00", end_minutes="17:00")


class TestSetup:
    """Tests for scheduler construction."""

    def test_needs_active_windows(self, monday_window):
        inactive = monday_window.model_copy(update={"is_active": False})
        with pytest.raises(EmptyAvailabilityError):
            BulkScheduler([inactive], [LessonRequest("s1", 45)])

    def test_invalid_request_duration(self, monday_window):
        with pytest.raises(InvalidDurationError):
            BulkScheduler([monday_window], [LessonRequest("s1", 0)])

    def test_request_key(self):
        assert LessonRequest("s1", 45).key == "s1:45"
        assert LessonRequest("s1", 45, request_id="req-7").key == "req-7"


class TestSolve:
    """Tests for solving placements."""

    def test_packs_two_lessons_back_to_back(self, monday_window):
        solution = BulkScheduler([monday_window], [LessonRequest("s1", 45), LessonRequest("s2", 45)]).solve()

        assert solution.status == SolverStatus.OPTIMAL
        assert solution.unplaced == []
        assert [s.start_time for s in solution.slots] == ["15:00", "15:45"]
        assert {p.request.student_id for p in solution.placements} == {"s1", "s2"}

    def test_placements_stay_in_window_and_apart(self, monday_window, tuesday_window):
        requests = [LessonRequest("s1", 30), LessonRequest("s2", 45), LessonRequest("s3", 60)]
        solution = BulkScheduler([monday_window, tuesday_window], requests).solve()

        assert solution.is_feasible
        windows = {"mon": monday_window, "tue": tuesday_window}
        for placement in solution.placements:
            assert fits_within(placement.slot, windows[placement.window_id])
            assert placement.slot.day == windows[placement.window_id].day
        slots = solution.slots
        for i, a in enumerate(slots):
            for b in slots[i + 1:]:
                assert not collides(a, b)

    def test_avoids_teacher_bookings(self, monday_window):
        booked = Booking(owner_id="t1", subject_id="s9", day=1, start_minutes="15:00", duration_minutes=45)
        solution = BulkScheduler(
            [monday_window],
            [LessonRequest("s1", 45), LessonRequest("s2", 45)],
            teacher_bookings=[booked],
        ).solve()

        assert len(solution.placements) == 1
        assert solution.placements[0].slot.start_time == "15:45"
        assert len(solution.unplaced) == 1

    def test_avoids_student_commitments(self, monday_window):
        rehearsal = ExternalCommitment(kind="rehearsal", subject_id="s1", day=1,
                                       start_minutes="14:00", end_minutes="15:30")
        overlapping = ExternalCommitment(kind="theory", subject_id="s1", day=1,
                                         start_minutes="15:00", end_minutes="15:40")
        solution = BulkScheduler(
            [monday_window],
            [LessonRequest("s1", 45)],
            student_commitments={"s1": [rehearsal, overlapping]},
        ).solve()

        assert solution.is_feasible
        assert solution.slots[0].start_time == "15:45"
        assert not collides(solution.slots[0], rehearsal)

    def test_request_too_long_is_unplaced(self, tuesday_window):
        solution = BulkScheduler([tuesday_window], [LessonRequest("s1", 90)]).solve()
        assert solution.is_feasible
        assert solution.placements == []
        assert [r.student_id for r in solution.unplaced] == ["s1"]

    def test_duplicate_requests_tracked_separately(self, tuesday_window):
        solution = BulkScheduler([tuesday_window], [LessonRequest("s1", 30), LessonRequest("s1", 30)]).solve()
        assert len(solution.placements) == 2
        assert solution.unplaced == []

    def test_placement_slot_identity(self, monday_window):
        solution = BulkScheduler([monday_window], [LessonRequest("s1", 30)]).solve()
        slot = solution.placements[0].slot
        assert slot.id == "s1:30@mon"
        assert slot.owner_id == "t1"
        assert slot.subject_id == "s1"
