"""
Conflict detection for proposed lessons.

Classifies every collision between a proposed slot and a party's existing
commitments:
- Teacher double booking (high)
- Student double booking (high)
- Orchestra rehearsal clash (medium)
- Theory lesson clash (medium)
- Room already in use (low)

Severity is fixed per conflict type. High conflicts block a booking;
medium and low conflicts are advisory and may be overridden by the caller.
The detector only reports, it never rejects.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from lessonengine.data.models import Booking, Commitment, ExternalCommitment, TimeSlot
from lessonengine.intervals import collides


# =============================================================================
# Enums
# =============================================================================

class ConflictType(str, Enum):
    """Kind of collision."""
    TEACHER_DOUBLE_BOOKED = "teacher_double_booked"
    STUDENT_DOUBLE_BOOKED = "student_double_booked"
    ROOM_CONFLICT = "room_conflict"
    REHEARSAL_CONFLICT = "rehearsal_conflict"
    THEORY_CONFLICT = "theory_conflict"


class Severity(str, Enum):
    """How serious a conflict is."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


SEVERITY_BY_TYPE: dict[ConflictType, Severity] = {
    ConflictType.TEACHER_DOUBLE_BOOKED: Severity.HIGH,
    ConflictType.STUDENT_DOUBLE_BOOKED: Severity.HIGH,
    ConflictType.REHEARSAL_CONFLICT: Severity.MEDIUM,
    ConflictType.THEORY_CONFLICT: Severity.MEDIUM,
    ConflictType.ROOM_CONFLICT: Severity.LOW,
}

CONFLICT_MESSAGES: dict[ConflictType, str] = {
    ConflictType.TEACHER_DOUBLE_BOOKED: "The teacher is already teaching at this time",
    ConflictType.STUDENT_DOUBLE_BOOKED: "The student already has a lesson at this time",
    ConflictType.REHEARSAL_CONFLICT: "The student has a rehearsal at this time",
    ConflictType.THEORY_CONFLICT: "The student has a theory lesson at this time",
    ConflictType.ROOM_CONFLICT: "The room is occupied at this time",
}

CONFLICT_SUGGESTIONS: dict[ConflictType, tuple[str, ...]] = {
    ConflictType.TEACHER_DOUBLE_BOOKED: ("Choose a different time", "Cancel the existing lesson"),
    ConflictType.STUDENT_DOUBLE_BOOKED: ("Choose a different time", "Move the existing lesson"),
    ConflictType.REHEARSAL_CONFLICT: ("Choose a different time", "Confirm priority with the student"),
    ConflictType.THEORY_CONFLICT: ("Choose a different time", "Check whether the theory lesson is mandatory"),
    ConflictType.ROOM_CONFLICT: ("Choose a different room", "Choose a different time"),
}


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class Conflict:
    """A collision between a proposed slot and one existing commitment."""
    type: ConflictType
    severity: Severity
    conflicting_slot: TimeSlot
    message: str
    suggestions: tuple[str, ...] = ()

    @classmethod
    def of(cls, conflict_type: ConflictType, slot: TimeSlot) -> Conflict:
        """Create a conflict with the fixed severity and default texts for its type."""
        return cls(
            type=conflict_type,
            severity=SEVERITY_BY_TYPE[conflict_type],
            conflicting_slot=slot,
            message=CONFLICT_MESSAGES[conflict_type],
            suggestions=CONFLICT_SUGGESTIONS[conflict_type],
        )

    @property
    def is_blocking(self) -> bool:
        """Identity conflicts cannot be overridden."""
        return self.severity == Severity.HIGH

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "conflictingSlot": self.conflicting_slot.to_dict(),
            "suggestions": list(self.suggestions),
        }


@dataclass
class ConflictContext:
    """Everything a proposed slot is checked against."""
    teacher_bookings: list[TimeSlot] = field(default_factory=list)
    student_bookings: list[TimeSlot] = field(default_factory=list)
    rehearsals: list[TimeSlot] = field(default_factory=list)
    theory_lessons: list[TimeSlot] = field(default_factory=list)
    room_bookings: list[TimeSlot] = field(default_factory=list)

    @classmethod
    def from_commitments(
        cls,
        commitments: Iterable[Commitment],
        teacher_id: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> ConflictContext:
        """
        Sort a mixed list of commitments into a context.

        Lessons are dispatched by teacher and student id (and always count
        for room checks). Rehearsals and theory lessons are dispatched by
        kind, keeping only those of the given student or of no student.
        """
        context = cls()
        for commitment in commitments:
            if isinstance(commitment, Booking):
                if teacher_id is not None and commitment.owner_id == teacher_id:
                    context.teacher_bookings.append(commitment)
                if student_id is not None and commitment.subject_id == student_id:
                    context.student_bookings.append(commitment)
                if commitment.location:
                    context.room_bookings.append(commitment)
            elif isinstance(commitment, ExternalCommitment):
                if student_id is not None and commitment.subject_id not in (None, student_id):
                    continue
                if commitment.kind == "rehearsal":
                    context.rehearsals.append(commitment)
                else:
                    context.theory_lessons.append(commitment)
            else:
                raise TypeError(f"Unsupported commitment: {commitment!r}")
        return context


# =============================================================================
# Detection
# =============================================================================

def _colliding(proposed: TimeSlot, slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Entries on the proposed slot's day that overlap it, excluding itself."""
    return [
        slot for slot in slots
        if not (proposed.id is not None and slot.id == proposed.id)
        and collides(proposed, slot)
    ]


def detect_conflicts(proposed: TimeSlot, context: ConflictContext) -> list[Conflict]:
    """
    Find every conflict for a proposed slot.

    Rules run independently, so one slot can yield several conflicts, and
    each colliding entry yields its own record. Results are ordered by rule
    (teacher, student, rehearsal, theory, room), then by context order.

    Args:
        proposed: The slot to check (owner_id = teacher, subject_id = student)
        context: The party's existing commitments

    Returns:
        List of conflicts (empty if the slot is free)
    """
    conflicts: list[Conflict] = []

    if proposed.owner_id is not None:
        teacher_slots = [s for s in context.teacher_bookings if s.owner_id == proposed.owner_id]
        for slot in _colliding(proposed, teacher_slots):
            conflicts.append(Conflict.of(ConflictType.TEACHER_DOUBLE_BOOKED, slot))

    if proposed.subject_id is not None:
        student_slots = [s for s in context.student_bookings if s.subject_id == proposed.subject_id]
        for slot in _colliding(proposed, student_slots):
            conflicts.append(Conflict.of(ConflictType.STUDENT_DOUBLE_BOOKED, slot))

    for slot in _colliding(proposed, context.rehearsals):
        conflicts.append(Conflict.of(ConflictType.REHEARSAL_CONFLICT, slot))

    for slot in _colliding(proposed, context.theory_lessons):
        conflicts.append(Conflict.of(ConflictType.THEORY_CONFLICT, slot))

    if proposed.location:
        room_slots = [s for s in context.room_bookings if s.location == proposed.location]
        for slot in _colliding(proposed, room_slots):
            conflicts.append(Conflict.of(ConflictType.ROOM_CONFLICT, slot))

    return conflicts


def blocking_conflicts(conflicts: Sequence[Conflict]) -> list[Conflict]:
    """Conflicts that must prevent the booking."""
    return [c for c in conflicts if c.is_blocking]


def overridable_conflicts(conflicts: Sequence[Conflict]) -> list[Conflict]:
    """Advisory conflicts the caller may choose to accept."""
    return [c for c in conflicts if not c.is_blocking]


def has_blocking_conflict(proposed: TimeSlot, context: ConflictContext) -> bool:
    return any(c.is_blocking for c in detect_conflicts(proposed, context))
