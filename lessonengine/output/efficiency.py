"""
Efficiency analysis of a teacher's committed schedule.

Compares what a teacher has booked against what they declared available:
- Utilization: booked minutes as a share of available minutes
- Back-to-back ratio: share of consecutive same-day lessons with no gap
- Peak hours: the busiest lesson start hours
- Gap hours: where idle time opens up between same-day lessons
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from lessonengine.config import DEFAULT_PEAK_HOURS, EfficiencyThresholds
from lessonengine.data.models import TimeSlot
from lessonengine.intervals import MINUTES_PER_HOUR, hour_label


RECOMMEND_MORE_BOOKINGS = "Utilization is low: there is room for more lessons"
RECOMMEND_CONSOLIDATE = "Few lessons are back-to-back: consolidate lessons to save transition time"
RECOMMEND_BREAKS = "Workload is very high: consider adding breaks between lessons"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class EfficiencyReport:
    """Efficiency metrics for one teacher's schedule."""
    utilization_rate: float
    back_to_back_percentage: float
    peak_hours: list[str] = field(default_factory=list)
    gap_hours: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    total_available_minutes: int = 0
    total_booked_minutes: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "utilizationRate": self.utilization_rate,
            "backToBackPercentage": self.back_to_back_percentage,
            "peakHours": self.peak_hours,
            "gapHours": self.gap_hours,
            "recommendations": self.recommendations,
            "totalAvailableMinutes": self.total_available_minutes,
            "totalBookedMinutes": self.total_booked_minutes,
        }


# =============================================================================
# Efficiency Analyzer
# =============================================================================

class EfficiencyAnalyzer:
    """
    Calculator for teacher schedule efficiency.

    Usage:
        analyzer = EfficiencyAnalyzer()
        report = analyzer.analyze(bookings, windows)
    """

    def __init__(
        self,
        thresholds: Optional[EfficiencyThresholds] = None,
        peak_hours_count: int = DEFAULT_PEAK_HOURS,
    ):
        self.thresholds = thresholds or EfficiencyThresholds()
        self.peak_hours_count = peak_hours_count

    def analyze(
        self,
        teacher_bookings: Sequence[TimeSlot],
        teacher_availability: Sequence[TimeSlot],
    ) -> EfficiencyReport:
        """
        Analyze a teacher's bookings against their availability.

        Args:
            teacher_bookings: The teacher's committed lessons
            teacher_availability: The teacher's declared windows

        Returns:
            EfficiencyReport
        """
        available = sum(w.duration_minutes for w in teacher_availability)
        booked = sum(b.duration_minutes for b in teacher_bookings)

        utilization = self.calculate_utilization(booked, available)
        back_to_back = self.calculate_back_to_back(teacher_bookings)

        return EfficiencyReport(
            utilization_rate=utilization,
            back_to_back_percentage=back_to_back,
            peak_hours=self.calculate_peak_hours(teacher_bookings),
            gap_hours=self.calculate_gap_hours(teacher_bookings),
            recommendations=self.recommend(utilization, back_to_back),
            total_available_minutes=available,
            total_booked_minutes=booked,
        )

    def calculate_utilization(self, booked_minutes: int, available_minutes: int) -> float:
        """
        Booked time as a percentage of available time.

        Returns 0 when nothing is available. Bookings outside declared
        availability cannot push the rate above 100.
        """
        if available_minutes <= 0:
            return 0.0
        rate = booked_minutes / available_minutes * 100
        return round(min(100.0, max(0.0, rate)), 2)

    def calculate_back_to_back(self, bookings: Sequence[TimeSlot]) -> float:
        """
        Percentage of consecutive lesson pairs with zero gap.

        Lessons are ordered by day and start; a pair spanning two days never
        counts as back-to-back. Fewer than two lessons gives 0.
        """
        if len(bookings) < 2:
            return 0.0

        ordered = _chronological(bookings)
        back_to_back = sum(
            1 for prev, current in zip(ordered, ordered[1:])
            if prev.day == current.day and prev.end_minutes == current.start_minutes
        )
        return round(back_to_back / (len(ordered) - 1) * 100, 2)

    def calculate_peak_hours(self, bookings: Sequence[TimeSlot]) -> list[str]:
        """
        The most frequent lesson start hours, busiest first.

        Ties are broken by the earlier hour.
        """
        counts = Counter(b.start_minutes // MINUTES_PER_HOUR for b in bookings)
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [hour_label(hour * MINUTES_PER_HOUR) for hour, _ in ranked[:self.peak_hours_count]]

    def calculate_gap_hours(self, bookings: Sequence[TimeSlot]) -> list[str]:
        """Hour label where each idle gap between same-day lessons begins."""
        ordered = _chronological(bookings)
        gaps: list[str] = []
        for prev, current in zip(ordered, ordered[1:]):
            if prev.day == current.day and current.start_minutes > prev.end_minutes:
                label = hour_label(prev.end_minutes)
                if label not in gaps:
                    gaps.append(label)
        return gaps

    def recommend(self, utilization: float, back_to_back: float) -> list[str]:
        """Threshold-based hints."""
        t = self.thresholds
        recommendations: list[str] = []

        if utilization < t.low_utilization:
            recommendations.append(RECOMMEND_MORE_BOOKINGS)

        if back_to_back < t.low_back_to_back:
            recommendations.append(RECOMMEND_CONSOLIDATE)

        if utilization > t.high_utilization:
            recommendations.append(RECOMMEND_BREAKS)

        return recommendations


def _chronological(slots: Sequence[TimeSlot]) -> list[TimeSlot]:
    return sorted(slots, key=lambda s: (s.day, s.start_minutes))


# =============================================================================
# Convenience Functions
# =============================================================================

def analyze(
    teacher_bookings: Sequence[TimeSlot],
    teacher_availability: Sequence[TimeSlot],
    thresholds: Optional[EfficiencyThresholds] = None,
) -> EfficiencyReport:
    """Analyze a teacher's schedule with default settings."""
    return EfficiencyAnalyzer(thresholds).analyze(teacher_bookings, teacher_availability)


def generate_report(report: EfficiencyReport) -> str:
    """Generate a human-readable efficiency report."""
    lines = [
        "=" * 50,
        "SCHEDULE EFFICIENCY REPORT",
        "=" * 50,
        "",
        f"Utilization:     {report.utilization_rate:.1f}% "
        f"({report.total_booked_minutes}/{report.total_available_minutes} min)",
        f"Back-to-back:    {report.back_to_back_percentage:.1f}%",
        f"Peak hours:      {', '.join(report.peak_hours) or '-'}",
        f"Gap hours:       {', '.join(report.gap_hours) or '-'}",
    ]

    if report.recommendations:
        lines.extend(["", "RECOMMENDATIONS", "-" * 30])
        for i, rec in enumerate(report.recommendations, 1):
            lines.append(f"  {i}. {rec}")

    lines.append("=" * 50)
    return "\n".join(lines)
