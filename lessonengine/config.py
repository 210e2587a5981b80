"""
Engine configuration.

Policy constants for slot generation, suggestions and efficiency analysis.
These are business policy, not computed values.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Lesson lengths offered by the school, in minutes
LESSON_DURATIONS: tuple[int, ...] = (30, 45, 60)

DEFAULT_SAMPLE_STEP_MINUTES = 15
DEFAULT_BUFFER_MINUTES = 15
DEFAULT_MAX_ALTERNATIVES = 3
DEFAULT_MAX_OPTIMAL_SLOTS = 5
DEFAULT_PEAK_HOURS = 3


class EfficiencyThresholds(BaseModel):
    """Thresholds (percent) that trigger efficiency recommendations."""
    model_config = ConfigDict(extra="forbid")

    low_utilization: float = Field(default=60.0, ge=0, le=100, description="Below this, suggest more bookings")
    low_back_to_back: float = Field(default=40.0, ge=0, le=100, description="Below this, suggest consolidating")
    high_utilization: float = Field(default=90.0, ge=0, le=100, description="Above this, suggest breaks")


class EngineConfig(BaseModel):
    """Engine-wide configuration settings."""
    model_config = ConfigDict(extra="forbid")

    allowed_durations: list[int] = Field(
        default_factory=lambda: list(LESSON_DURATIONS),
        min_length=1,
        description="Lesson durations offered by the slot generator",
    )
    sample_step_minutes: int = Field(
        default=DEFAULT_SAMPLE_STEP_MINUTES, ge=1, le=240,
        description="Granularity of candidate start times",
    )
    buffer_minutes: int = Field(
        default=DEFAULT_BUFFER_MINUTES, ge=0, le=240,
        description="Gap between consecutive optimal-slot candidates",
    )
    max_alternatives: int = Field(default=DEFAULT_MAX_ALTERNATIVES, ge=1, description="Alternatives on conflict")
    max_optimal_slots: int = Field(default=DEFAULT_MAX_OPTIMAL_SLOTS, ge=1, description="Optimal slot suggestions")
    peak_hours_count: int = Field(default=DEFAULT_PEAK_HOURS, ge=1, description="Peak hours reported")
    bulk_time_limit_seconds: float = Field(default=10.0, gt=0, le=600, description="CP-SAT time limit")
    thresholds: EfficiencyThresholds = Field(default_factory=EfficiencyThresholds)

    @field_validator("allowed_durations")
    @classmethod
    def validate_durations(cls, value: list[int]) -> list[int]:
        """Durations must be positive whole minutes shorter than a day."""
        for duration in value:
            if duration <= 0 or duration >= 1440:
                raise ValueError(f"Invalid lesson duration: {duration}")
        return value


__all__ = [
    "LESSON_DURATIONS",
    "DEFAULT_SAMPLE_STEP_MINUTES",
    "DEFAULT_BUFFER_MINUTES",
    "DEFAULT_MAX_ALTERNATIVES",
    "DEFAULT_MAX_OPTIMAL_SLOTS",
    "DEFAULT_PEAK_HOURS",
    "EfficiencyThresholds",
    "EngineConfig",
]
