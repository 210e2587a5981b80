"""
Scheduling operations.

This package contains the slot generator, conflict detector, suggestion
strategies and the CP-SAT bulk scheduler.
"""

from .bulk import BulkScheduler, BulkSolution, LessonRequest, Placement, SolverStatus
from .conflicts import (
    Conflict,
    ConflictContext,
    ConflictType,
    Severity,
    SEVERITY_BY_TYPE,
    blocking_conflicts,
    detect_conflicts,
    has_blocking_conflict,
    overridable_conflicts,
)
from .generator import GenerationResult, SlotGenerator, generate_for_windows, generate_slots
from .optimizer import (
    find_optimal_slots,
    generate_back_to_back_suggestions,
    order_windows,
    pack_back_to_back,
    suggest_alternatives,
)

__all__ = [
    # Bulk placement
    "BulkScheduler",
    "BulkSolution",
    "LessonRequest",
    "Placement",
    "SolverStatus",
    # Conflicts
    "Conflict",
    "ConflictContext",
    "ConflictType",
    "Severity",
    "SEVERITY_BY_TYPE",
    "blocking_conflicts",
    "detect_conflicts",
    "has_blocking_conflict",
    "overridable_conflicts",
    # Generator
    "GenerationResult",
    "SlotGenerator",
    "generate_for_windows",
    "generate_slots",
    # Optimizer
    "find_optimal_slots",
    "generate_back_to_back_suggestions",
    "order_windows",
    "pack_back_to_back",
    "suggest_alternatives",
]
