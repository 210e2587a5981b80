"""Lesson scheduling engine - availability, conflicts and efficiency for a music school."""

from .config import EngineConfig, EfficiencyThresholds, LESSON_DURATIONS
from .data.models import (
    AvailabilityWindow,
    Booking,
    ExternalCommitment,
    ScheduleSnapshot,
    TimeSlot,
)
from .engine import AvailabilityEngine, SchedulingResult
from .errors import (
    EmptyAvailabilityError,
    InvalidDurationError,
    InvalidMinuteError,
    MalformedTimeError,
    SchedulingError,
)
from .scheduling.conflicts import Conflict, ConflictContext, ConflictType, Severity, detect_conflicts
from .scheduling.generator import generate_slots
from .scheduling.optimizer import find_optimal_slots, pack_back_to_back, suggest_alternatives
from .output.efficiency import EfficiencyReport, analyze

__all__ = [
    # Configuration
    "EngineConfig",
    "EfficiencyThresholds",
    "LESSON_DURATIONS",
    # Data model
    "TimeSlot",
    "AvailabilityWindow",
    "Booking",
    "ExternalCommitment",
    "ScheduleSnapshot",
    # Engine
    "AvailabilityEngine",
    "SchedulingResult",
    # Errors
    "SchedulingError",
    "MalformedTimeError",
    "InvalidMinuteError",
    "InvalidDurationError",
    "EmptyAvailabilityError",
    # Operations
    "Conflict",
    "ConflictContext",
    "ConflictType",
    "Severity",
    "detect_conflicts",
    "generate_slots",
    "suggest_alternatives",
    "pack_back_to_back",
    "find_optimal_slots",
    "EfficiencyReport",
    "analyze",
]
