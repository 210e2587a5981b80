"""Data model and snapshot loading."""

from .loader import DataValidationError, load_snapshot, snapshot_from_dict
from .models import (
    AvailabilityWindow,
    Booking,
    Commitment,
    CommitmentKind,
    Day,
    ExternalCommitment,
    ScheduleSnapshot,
    TimeSlot,
    active_windows,
    parse_commitments,
)
from .validation import ValidationResult, WindowOverlap, validate_availability

__all__ = [
    # Loader
    "DataValidationError",
    "load_snapshot",
    "snapshot_from_dict",
    # Models
    "AvailabilityWindow",
    "Booking",
    "Commitment",
    "CommitmentKind",
    "Day",
    "ExternalCommitment",
    "ScheduleSnapshot",
    "TimeSlot",
    "active_windows",
    "parse_commitments",
    # Validation
    "ValidationResult",
    "WindowOverlap",
    "validate_availability",
]
