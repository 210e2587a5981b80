"""
Engine facade.

Bundles slot generation, conflict detection, suggestions and analysis
behind one object configured with the school's policy constants.

Integration requirement:
    The engine checks snapshots. Two concurrent booking requests for the
    same teacher can both pass check() against the same stale snapshot.
    Callers must serialize "read commitments -> check -> commit booking"
    per teacher (a per-teacher lock, or an optimistic version check at
    commit time in the booking store). Without that, a clean check only
    holds at read time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional

from .config import EngineConfig
from .data.models import AvailabilityWindow, ScheduleSnapshot, TimeSlot, active_windows
from .output.efficiency import EfficiencyAnalyzer, EfficiencyReport
from .scheduling.bulk import BulkScheduler, BulkSolution, LessonRequest
from .scheduling.conflicts import (
    Conflict,
    ConflictContext,
    blocking_conflicts,
    detect_conflicts,
    overridable_conflicts,
)
from .scheduling.generator import generate_for_windows
from .scheduling.optimizer import (
    find_optimal_slots,
    generate_back_to_back_suggestions,
    suggest_alternatives,
)

logger = logging.getLogger(__name__)


@dataclass
class SchedulingResult:
    """Outcome of checking a proposed lesson."""
    success: bool
    conflicts: list[Conflict] = field(default_factory=list)
    alternatives: list[TimeSlot] = field(default_factory=list)

    @property
    def blocking(self) -> list[Conflict]:
        return blocking_conflicts(self.conflicts)

    @property
    def overridable(self) -> list[Conflict]:
        return overridable_conflicts(self.conflicts)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "alternativeSlots": [s.to_dict() for s in self.alternatives],
        }


class AvailabilityEngine:
    """
    Pure scheduling operations over caller-supplied snapshots.

    Holds only configuration; safe to share between threads.

    Usage:
        engine = AvailabilityEngine(EngineConfig())
        result = engine.check(proposed, context, availability=windows)
        if not result.success:
            show(result.blocking, result.alternatives)
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.analyzer = EfficiencyAnalyzer(
            thresholds=self.config.thresholds,
            peak_hours_count=self.config.peak_hours_count,
        )

    # -------------------------------------------------------------------------
    # Slots
    # -------------------------------------------------------------------------

    def candidate_slots(
        self,
        windows: Sequence[AvailabilityWindow],
        existing_bookings: Sequence[TimeSlot] = (),
        durations: Optional[Sequence[int]] = None,
    ) -> list[TimeSlot]:
        """All free candidates in the active windows, by day then start."""
        return generate_for_windows(
            active_windows(windows),
            existing_bookings,
            allowed_durations=durations or self.config.allowed_durations,
            sample_step_minutes=self.config.sample_step_minutes,
        )

    def optimal_slots(
        self,
        windows: Sequence[AvailabilityWindow],
        student_commitments: Sequence[TimeSlot],
        duration: int,
        preferred_start_times: Sequence[str] = (),
    ) -> list[TimeSlot]:
        return find_optimal_slots(
            active_windows(windows),
            student_commitments,
            duration,
            preferred_start_times=preferred_start_times,
            buffer_minutes=self.config.buffer_minutes,
            max_results=self.config.max_optimal_slots,
        )

    def back_to_back(self, windows: Sequence[AvailabilityWindow], duration: int) -> list[TimeSlot]:
        return generate_back_to_back_suggestions(active_windows(windows), duration)

    # -------------------------------------------------------------------------
    # Conflicts
    # -------------------------------------------------------------------------

    def check(
        self,
        proposed: TimeSlot,
        context: ConflictContext,
        availability: Sequence[AvailabilityWindow] = (),
    ) -> SchedulingResult:
        """
        Check a proposed lesson and suggest alternatives if it is blocked.

        Only blocking (high severity) conflicts make the check fail; advisory
        conflicts are reported for the caller to accept or not.
        """
        conflicts = detect_conflicts(proposed, context)
        blocked = bool(blocking_conflicts(conflicts))

        alternatives: list[TimeSlot] = []
        windows = active_windows(availability)
        if blocked and windows:
            occupied = [
                *context.teacher_bookings,
                *context.student_bookings,
                *context.rehearsals,
                *context.theory_lessons,
            ]
            alternatives = suggest_alternatives(
                proposed, windows, occupied, max_results=self.config.max_alternatives
            )

        logger.debug(
            "Checked %s: %d conflicts (%s), %d alternatives",
            proposed, len(conflicts), "blocked" if blocked else "ok", len(alternatives),
        )
        return SchedulingResult(success=not blocked, conflicts=conflicts, alternatives=alternatives)

    def check_snapshot(self, snapshot: ScheduleSnapshot, proposed: TimeSlot) -> SchedulingResult:
        """Check a proposed lesson against everything in a snapshot."""
        context = snapshot.context_for(proposed.owner_id, proposed.subject_id)
        availability = snapshot.windows_for_teacher(proposed.owner_id) if proposed.owner_id else []
        return self.check(proposed, context, availability)

    # -------------------------------------------------------------------------
    # Analysis and bulk placement
    # -------------------------------------------------------------------------

    def analyze(
        self,
        teacher_bookings: Sequence[TimeSlot],
        teacher_availability: Sequence[TimeSlot],
    ) -> EfficiencyReport:
        return self.analyzer.analyze(teacher_bookings, teacher_availability)

    def schedule_bulk(
        self,
        windows: Sequence[AvailabilityWindow],
        requests: Sequence[LessonRequest],
        teacher_bookings: Sequence[TimeSlot] = (),
        student_commitments: Optional[Mapping[str, Sequence[TimeSlot]]] = None,
    ) -> BulkSolution:
        """Place a batch of lessons at once with the CP-SAT scheduler."""
        scheduler = BulkScheduler(
            windows,
            requests,
            teacher_bookings=teacher_bookings,
            student_commitments=student_commitments,
            sample_step_minutes=self.config.sample_step_minutes,
        )
        return scheduler.solve(time_limit_seconds=self.config.bulk_time_limit_seconds)
