"""
Bulk lesson placement with CP-SAT.

Places a batch of lesson requests into one teacher's availability windows.
Each request may be placed in at most one window, at a start aligned to the
sampling step. Placed lessons never overlap each other, the teacher's
existing bookings, or the student's commitments.

Objective (lexicographic via weights):
1. Place as many requests as possible
2. Start lessons as early in their windows as possible, which packs
   lessons back-to-back
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ortools.sat.python import cp_model

from lessonengine.config import DEFAULT_SAMPLE_STEP_MINUTES
from lessonengine.data.models import AvailabilityWindow, TimeSlot, active_windows
from lessonengine.errors import EmptyAvailabilityError

from .generator import validate_duration

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================

class SolverStatus(str, Enum):
    """Solver result status."""
    OPTIMAL = "OPTIMAL"
    FEASIBLE = "FEASIBLE"
    INFEASIBLE = "INFEASIBLE"
    MODEL_INVALID = "MODEL_INVALID"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class LessonRequest:
    """A lesson that should be placed for a student."""
    student_id: str
    duration: int
    request_id: Optional[str] = None

    @property
    def key(self) -> str:
        return self.request_id or f"{self.student_id}:{self.duration}"


@dataclass
class PlacementVars:
    """Variables for one request in one window."""
    request_index: int
    window: AvailabilityWindow
    step_var: cp_model.IntVar       # Steps from window start
    start_var: cp_model.IntVar      # Start in minutes from midnight
    end_var: cp_model.IntVar
    present_var: cp_model.IntVar    # 1 if the request is placed here
    interval_var: cp_model.IntervalVar


@dataclass
class Placement:
    """A request placed into a concrete slot."""
    request_index: int
    request: LessonRequest
    slot: TimeSlot
    window_id: str


@dataclass
class BulkSolution:
    """Result of a bulk placement."""
    status: SolverStatus
    placements: list[Placement] = field(default_factory=list)
    unplaced: list[LessonRequest] = field(default_factory=list)
    solve_time_ms: int = 0
    objective_value: Optional[int] = None

    @property
    def is_feasible(self) -> bool:
        return self.status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE)

    @property
    def slots(self) -> list[TimeSlot]:
        return sorted((p.slot for p in self.placements), key=lambda s: (s.day, s.start_minutes))


# =============================================================================
# Scheduler
# =============================================================================

class BulkScheduler:
    """
    Builds and solves a CP-SAT model placing many lessons at once.

    Usage:
        scheduler = BulkScheduler(windows, requests, teacher_bookings, student_commitments)
        solution = scheduler.solve(time_limit_seconds=10)
    """

    def __init__(
        self,
        windows: Sequence[AvailabilityWindow],
        requests: Sequence[LessonRequest],
        teacher_bookings: Sequence[TimeSlot] = (),
        student_commitments: Optional[Mapping[str, Sequence[TimeSlot]]] = None,
        sample_step_minutes: int = DEFAULT_SAMPLE_STEP_MINUTES,
    ):
        """
        Initialize the scheduler.

        Args:
            windows: The teacher's availability windows (inactive ones are ignored)
            requests: Lessons to place
            teacher_bookings: The teacher's existing bookings
            student_commitments: Existing commitments per student id
            sample_step_minutes: Granularity of lesson starts

        Raises:
            EmptyAvailabilityError: If no active windows are given
            InvalidDurationError: If a request or the step has an invalid duration
        """
        self.windows = active_windows(windows)
        if not self.windows:
            raise EmptyAvailabilityError("Bulk scheduling needs at least one active availability window")

        validate_duration(sample_step_minutes)
        for request in requests:
            validate_duration(request.duration)

        self.requests = list(requests)
        self.teacher_bookings = [
            *teacher_bookings,
            *(b for w in self.windows for b in w.bookings),
        ]
        self.student_commitments = dict(student_commitments or {})
        self.step = sample_step_minutes

        self.model = cp_model.CpModel()
        self.placement_vars: list[PlacementVars] = []
        self._built = False

    # -------------------------------------------------------------------------
    # Model Construction
    # -------------------------------------------------------------------------

    def build(self) -> None:
        """Create variables, constraints and the objective."""
        if self._built:
            return

        self._create_variables()
        self._add_one_placement_per_request()
        self._add_teacher_no_overlap()
        self._add_student_no_overlap()
        self._set_objective()

        self._built = True

    def _create_variables(self) -> None:
        """One optional interval per (request, window) pair that fits."""
        for index, request in enumerate(self.requests):
            for window in self.windows:
                if window.duration_minutes < request.duration:
                    continue

                prefix = f"R{index}_W{window.id}"
                max_steps = (window.duration_minutes - request.duration) // self.step

                step_var = self.model.NewIntVar(0, max_steps, f"{prefix}_step")
                start_var = self.model.NewIntVar(
                    window.start_minutes, window.end_minutes - request.duration, f"{prefix}_start"
                )
                end_var = self.model.NewIntVar(
                    window.start_minutes + request.duration, window.end_minutes, f"{prefix}_end"
                )
                self.model.Add(start_var == window.start_minutes + self.step * step_var)
                self.model.Add(end_var == start_var + request.duration)

                present_var = self.model.NewBoolVar(f"{prefix}_present")
                interval_var = self.model.NewOptionalIntervalVar(
                    start_var, request.duration, end_var, present_var, f"{prefix}_interval"
                )

                self.placement_vars.append(PlacementVars(
                    request_index=index,
                    window=window,
                    step_var=step_var,
                    start_var=start_var,
                    end_var=end_var,
                    present_var=present_var,
                    interval_var=interval_var,
                ))

    def _add_one_placement_per_request(self) -> None:
        by_request: dict[int, list[cp_model.IntVar]] = defaultdict(list)
        for pv in self.placement_vars:
            by_request[pv.request_index].append(pv.present_var)

        for presences in by_request.values():
            if len(presences) > 1:
                self.model.Add(sum(presences) <= 1)

    def _fixed_intervals(self, slots: Sequence[TimeSlot], day: int, prefix: str) -> list[cp_model.IntervalVar]:
        """
        Constant intervals for existing commitments on one day.

        Overlapping commitments are merged first; two fixed intervals that
        overlap would make the no-overlap constraint infeasible.
        """
        merged: list[list[int]] = []
        for slot in sorted((s for s in slots if s.day == day), key=lambda s: s.start_minutes):
            if merged and slot.start_minutes < merged[-1][1]:
                merged[-1][1] = max(merged[-1][1], slot.end_minutes)
            else:
                merged.append([slot.start_minutes, slot.end_minutes])

        return [
            self.model.NewIntervalVar(start, end - start, end, f"{prefix}_fixed{i}")
            for i, (start, end) in enumerate(merged)
        ]

    def _add_teacher_no_overlap(self) -> None:
        """The teacher teaches one lesson at a time, around existing bookings."""
        by_day: dict[int, list[cp_model.IntervalVar]] = defaultdict(list)
        for pv in self.placement_vars:
            by_day[pv.window.day].append(pv.interval_var)

        for day, intervals in by_day.items():
            fixed = self._fixed_intervals(self.teacher_bookings, day, f"T_day{day}")
            if len(intervals) + len(fixed) > 1:
                self.model.AddNoOverlap(intervals + fixed)

    def _add_student_no_overlap(self) -> None:
        """Students cannot attend two things at once."""
        by_student_day: dict[tuple[str, int], list[cp_model.IntervalVar]] = defaultdict(list)
        for pv in self.placement_vars:
            student_id = self.requests[pv.request_index].student_id
            by_student_day[(student_id, pv.window.day)].append(pv.interval_var)

        for (student_id, day), intervals in by_student_day.items():
            commitments = self.student_commitments.get(student_id, ())
            fixed = self._fixed_intervals(commitments, day, f"S{student_id}_day{day}")
            if len(intervals) + len(fixed) > 1:
                self.model.AddNoOverlap(intervals + fixed)

    def _set_objective(self) -> None:
        """Maximize placements first, then prefer early starts."""
        if not self.placement_vars:
            return

        # Any single extra placement outweighs every possible step offset
        placement_weight = 1 + sum(
            (pv.window.duration_minutes - self.requests[pv.request_index].duration) // self.step
            for pv in self.placement_vars
        )
        placed = sum(pv.present_var for pv in self.placement_vars)
        offsets = sum(pv.step_var for pv in self.placement_vars)
        self.model.Maximize(placement_weight * placed - offsets)

    # -------------------------------------------------------------------------
    # Solving
    # -------------------------------------------------------------------------

    def solve(self, time_limit_seconds: float = 10.0) -> BulkSolution:
        """
        Solve the placement problem.

        Args:
            time_limit_seconds: Maximum time to spend solving

        Returns:
            BulkSolution with placements and the requests left unplaced
        """
        self.build()

        logger.info(
            "Placing %d requests into %d windows (%d candidate intervals)",
            len(self.requests), len(self.windows), len(self.placement_vars),
        )

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = time_limit_seconds
        solver.parameters.num_search_workers = 0
        solver.parameters.log_search_progress = False

        status_code = solver.Solve(self.model)

        status_map = {
            cp_model.OPTIMAL: SolverStatus.OPTIMAL,
            cp_model.FEASIBLE: SolverStatus.FEASIBLE,
            cp_model.INFEASIBLE: SolverStatus.INFEASIBLE,
            cp_model.MODEL_INVALID: SolverStatus.MODEL_INVALID,
            cp_model.UNKNOWN: SolverStatus.UNKNOWN,
        }
        status = status_map.get(status_code, SolverStatus.UNKNOWN)

        placements: list[Placement] = []
        if status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE):
            placements = self._extract_placements(solver)
        else:
            logger.warning("Bulk placement finished with status %s", status.value)

        placed_indices = {p.request_index for p in placements}
        unplaced = [r for i, r in enumerate(self.requests) if i not in placed_indices]

        return BulkSolution(
            status=status,
            placements=placements,
            unplaced=unplaced,
            solve_time_ms=int(solver.WallTime() * 1000),
            objective_value=int(solver.ObjectiveValue()) if status == SolverStatus.OPTIMAL else None,
        )

    def _extract_placements(self, solver: cp_model.CpSolver) -> list[Placement]:
        """Read placed intervals back into slots."""
        placements = []
        for pv in self.placement_vars:
            if not solver.Value(pv.present_var):
                continue

            request = self.requests[pv.request_index]
            start = solver.Value(pv.start_var)
            placements.append(Placement(
                request_index=pv.request_index,
                request=request,
                slot=TimeSlot(
                    id=f"{request.key}@{pv.window.id}",
                    day=pv.window.day,
                    start_minutes=start,
                    end_minutes=start + request.duration,
                    location=pv.window.location,
                    owner_id=pv.window.owner_id,
                    subject_id=request.student_id,
                ),
                window_id=pv.window.id,
            ))

        placements.sort(key=lambda p: (p.slot.day, p.slot.start_minutes))
        return placements
