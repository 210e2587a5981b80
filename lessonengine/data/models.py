"""
Pydantic models for the scheduling engine data model.

Time conventions:
- Time is represented as minutes from midnight (0-1440, end exclusive)
- Days are 0-6 (Sunday-Saturday)
- At the boundary, times may be given as 'HH:MM' strings

Example times:
- 09:00 = 540
- 15:00 = 900
- 16:30 = 990

Entities never own each other: a booking refers to its teacher and student
only by id (owner_id / subject_id).
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)

from lessonengine.config import LESSON_DURATIONS, EngineConfig
from lessonengine.errors import InvalidDurationError
from lessonengine.intervals import MINUTES_PER_DAY, day_name, to_minutes, to_time_string

if TYPE_CHECKING:
    from lessonengine.scheduling.conflicts import ConflictContext


# =============================================================================
# Constants and Enums
# =============================================================================

class Day(int, Enum):
    """Day of week: 0=Sunday through 6=Saturday."""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class CommitmentKind(str, Enum):
    """Discriminator values for the Commitment union."""
    LESSON = "lesson"
    REHEARSAL = "rehearsal"
    THEORY = "theory"


# Type aliases for documentation
StartMinutes = Annotated[int, Field(ge=0, le=1439, description="Start as minutes from midnight")]
EndMinutes = Annotated[int, Field(ge=1, le=1440, description="End as minutes from midnight (exclusive)")]
DayIndex = Annotated[int, Field(ge=0, le=6, description="Day of week (0=Sunday, 6=Saturday)")]

# Boundary spellings accepted for slot fields
_FIELD_ALIASES = {
    "start_time": "start_minutes",
    "end_time": "end_minutes",
    "duration": "duration_minutes",
    "teacher_id": "owner_id",
    "student_id": "subject_id",
}


def format_end(minutes: int) -> str:
    """Format an exclusive end offset, allowing the end-of-day value 24:00."""
    return "24:00" if minutes == MINUTES_PER_DAY else to_time_string(minutes)


def parse_end(time_str: str) -> int:
    """Inverse of format_end: like to_minutes, but also accepts 24:00."""
    return MINUTES_PER_DAY if time_str == "24:00" else to_minutes(time_str)


# =============================================================================
# Time Slots
# =============================================================================

class TimeSlot(BaseModel):
    """
    The universal scheduling unit: a half-open time range on one weekday.

    Accepts either minute offsets or 'HH:MM' strings for start/end, and an
    optional duration_minutes which either fills in a missing end or must
    agree with the given one.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: Optional[str] = Field(default=None, description="Identifier, if any")
    day: DayIndex = Field(description="Day of week (0-6)")
    start_minutes: StartMinutes
    end_minutes: EndMinutes
    location: Optional[str] = Field(default=None, description="Room / location name")
    owner_id: Optional[str] = Field(default=None, description="Teacher ID")
    subject_id: Optional[str] = Field(default=None, description="Student ID")

    @model_validator(mode="before")
    @classmethod
    def resolve_boundary_fields(cls, data: Any) -> Any:
        """Normalize boundary spellings and resolve duration_minutes into an end."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        for alias, name in _FIELD_ALIASES.items():
            if alias in data and name not in data:
                data[name] = data.pop(alias)

        if "duration_minutes" not in data:
            return data

        duration = data.pop("duration_minutes")
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidDurationError(f"duration_minutes must be a positive integer, got {duration!r}")

        start = data.get("start_minutes")
        if isinstance(start, str):
            start = to_minutes(start)
        if start is None:
            raise ValueError("start_minutes is required")

        end = data.get("end_minutes")
        if isinstance(end, str):
            end = parse_end(end)

        if end is None:
            if start + duration > MINUTES_PER_DAY:
                raise InvalidDurationError(
                    f"{to_time_string(start)} + {duration} minutes crosses midnight"
                )
            data["end_minutes"] = start + duration
        elif end - start != duration:
            raise InvalidDurationError(
                f"duration_minutes ({duration}) does not match "
                f"{to_time_string(start)}-{format_end(end)}"
            )
        return data

    @field_validator("start_minutes", mode="before")
    @classmethod
    def parse_time_string(cls, value: Any) -> Any:
        """Accept 'HH:MM' strings for time fields."""
        if isinstance(value, str):
            return to_minutes(value)
        return value

    @field_validator("end_minutes", mode="before")
    @classmethod
    def parse_end_string(cls, value: Any) -> Any:
        """Accept 'HH:MM' strings for the end, including 24:00."""
        if isinstance(value, str):
            return parse_end(value)
        return value

    @model_validator(mode="after")
    def validate_time_range(self) -> "TimeSlot":
        """Ensure start time is before end time."""
        if self.start_minutes >= self.end_minutes:
            raise InvalidDurationError(
                f"start_minutes ({self.start_minutes}) must be less than "
                f"end_minutes ({self.end_minutes})"
            )
        return self

    @classmethod
    def from_times(cls, day: int, start: str, end: str, **kwargs: Any):
        """Build a slot from 'HH:MM' strings."""
        return cls(day=day, start_minutes=start, end_minutes=end, **kwargs)

    @property
    def duration_minutes(self) -> int:
        """Length of the slot; always end - start."""
        return self.end_minutes - self.start_minutes

    @property
    def start_time(self) -> str:
        return to_time_string(self.start_minutes)

    @property
    def end_time(self) -> str:
        return format_end(self.end_minutes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a camelCase dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "id": self.id,
            "day": self.day,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "durationMinutes": self.duration_minutes,
            "location": self.location,
            "ownerId": self.owner_id,
            "subjectId": self.subject_id,
        }
        return {k: v for k, v in data.items() if v is not None}

    def __str__(self) -> str:
        where = f" @ {self.location}" if self.location else ""
        return f"{day_name(self.day)} {self.start_time}-{self.end_time}{where}"


class Booking(TimeSlot):
    """A committed lesson: one teacher, one student, fixed length."""
    kind: Literal["lesson"] = "lesson"
    owner_id: str = Field(min_length=1, description="Teacher ID")
    subject_id: str = Field(min_length=1, description="Student ID")

    @model_validator(mode="after")
    def validate_lesson_duration(self) -> "Booking":
        """Lessons come in the fixed lengths the school offers."""
        if self.duration_minutes not in LESSON_DURATIONS:
            raise InvalidDurationError(
                f"Lesson duration {self.duration_minutes} not in {list(LESSON_DURATIONS)}"
            )
        return self


class ExternalCommitment(TimeSlot):
    """
    A student's rehearsal or theory-lesson obligation.

    Supplied by other parts of the school system; read-only here.
    """
    kind: Literal["rehearsal", "theory"]
    activity_id: Optional[str] = Field(default=None, description="Orchestra or theory-lesson ID")
    title: Optional[str] = Field(default=None, description="Display title")


Commitment = Annotated[Union[Booking, ExternalCommitment], Field(discriminator="kind")]

commitment_list_adapter: TypeAdapter[list[Commitment]] = TypeAdapter(list[Commitment])


def parse_commitments(data: list[dict[str, Any]]) -> list[Commitment]:
    """Validate a mixed list of lessons, rehearsals and theory lessons by 'kind'."""
    return commitment_list_adapter.validate_python(data)


class AvailabilityWindow(TimeSlot):
    """A teacher-declared block of time open for booking."""
    id: str = Field(min_length=1, description="Unique identifier")
    owner_id: str = Field(min_length=1, description="Teacher ID")
    is_active: bool = Field(default=True, description="Whether the window accepts bookings")
    bookings: tuple[Booking, ...] = Field(default=(), description="Bookings carved out of this window")
    notes: Optional[str] = Field(default=None, description="Free-text notes")

    @property
    def booked_minutes(self) -> int:
        return sum(b.duration_minutes for b in self.bookings)


def active_windows(windows: Sequence[AvailabilityWindow]) -> list[AvailabilityWindow]:
    """Keep only windows that accept bookings."""
    return [w for w in windows if w.is_active]


# =============================================================================
# Snapshot
# =============================================================================

class ScheduleSnapshot(BaseModel):
    """
    Everything the engine needs for one call, loaded by the caller.

    The engine reads snapshots; it never writes back to them.
    """
    model_config = ConfigDict(extra="forbid")

    config: EngineConfig = Field(default_factory=EngineConfig, description="Engine configuration")
    windows: list[AvailabilityWindow] = Field(default_factory=list, description="Availability windows")
    bookings: list[Booking] = Field(default_factory=list, description="Committed lessons")
    commitments: list[ExternalCommitment] = Field(default_factory=list, description="Rehearsals and theory lessons")

    @model_validator(mode="after")
    def validate_no_duplicate_ids(self) -> "ScheduleSnapshot":
        """Ensure no duplicate IDs within each entity type."""
        errors: list[str] = []

        def check_duplicates(items: Sequence[TimeSlot], entity_name: str) -> None:
            seen: set[str] = set()
            for item in items:
                if item.id is None:
                    continue
                if item.id in seen:
                    errors.append(f"Duplicate {entity_name} ID: '{item.id}'")
                seen.add(item.id)

        check_duplicates(self.windows, "window")
        check_duplicates(self.bookings, "booking")
        check_duplicates(self.commitments, "commitment")

        if errors:
            raise ValueError("Duplicate ID validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return self

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    def all_bookings(self) -> list[Booking]:
        """Snapshot bookings plus those carved out of windows, without repeats."""
        result: list[Booking] = []
        seen: set[str] = set()
        for booking in [*self.bookings, *(b for w in self.windows for b in w.bookings)]:
            if booking.id is not None:
                if booking.id in seen:
                    continue
                seen.add(booking.id)
            result.append(booking)
        return result

    def windows_for_teacher(self, teacher_id: str, active_only: bool = True) -> list[AvailabilityWindow]:
        """Get a teacher's windows ordered by day and start time."""
        windows = [w for w in self.windows if w.owner_id == teacher_id]
        if active_only:
            windows = active_windows(windows)
        return sorted(windows, key=lambda w: (w.day, w.start_minutes))

    def bookings_for_teacher(self, teacher_id: str) -> list[Booking]:
        return [b for b in self.all_bookings() if b.owner_id == teacher_id]

    def bookings_for_student(self, student_id: str) -> list[Booking]:
        return [b for b in self.all_bookings() if b.subject_id == student_id]

    def bookings_in_room(self, location: str) -> list[Booking]:
        return [b for b in self.all_bookings() if b.location == location]

    def commitments_for_student(
        self,
        student_id: str,
        kind: Optional[str] = None,
    ) -> list[ExternalCommitment]:
        """Get a student's rehearsals and/or theory lessons."""
        return [
            c for c in self.commitments
            if c.subject_id == student_id and (kind is None or c.kind == kind)
        ]

    def all_commitments(self) -> list[Commitment]:
        """Every commitment in the snapshot as one tagged list."""
        return [*self.all_bookings(), *self.commitments]

    def context_for(self, teacher_id: Optional[str], student_id: Optional[str]) -> ConflictContext:
        """Build the conflict context for a teacher/student pair."""
        from lessonengine.scheduling.conflicts import ConflictContext

        commitments = self.all_commitments() if student_id is not None else self.all_bookings()
        return ConflictContext.from_commitments(
            commitments,
            teacher_id=teacher_id,
            student_id=student_id,
        )

    def summary(self) -> dict[str, Any]:
        """Get a summary of the snapshot contents."""
        return {
            "teachers": len({w.owner_id for w in self.windows} | {b.owner_id for b in self.bookings}),
            "students": len({b.subject_id for b in self.bookings} | {c.subject_id for c in self.commitments if c.subject_id}),
            "windows": len(self.windows),
            "active_windows": len(active_windows(self.windows)),
            "bookings": len(self.all_bookings()),
            "rehearsals": sum(1 for c in self.commitments if c.kind == CommitmentKind.REHEARSAL.value),
            "theory_lessons": sum(1 for c in self.commitments if c.kind == CommitmentKind.THEORY.value),
        }


__all__ = [
    "Day",
    "CommitmentKind",
    "StartMinutes",
    "EndMinutes",
    "DayIndex",
    "format_end",
    "parse_end",
    "TimeSlot",
    "Booking",
    "ExternalCommitment",
    "Commitment",
    "commitment_list_adapter",
    "parse_commitments",
    "AvailabilityWindow",
    "active_windows",
    "ScheduleSnapshot",
]
