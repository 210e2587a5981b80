"""Tests for schedule efficiency analysis."""

from __future__ import annotations

import pytest

from lessonengine.config import EfficiencyThresholds
from lessonengine.data.models import AvailabilityWindow, Booking
from lessonengine.output.efficiency import (
    RECOMMEND_BREAKS,
    RECOMMEND_CONSOLIDATE,
    RECOMMEND_MORE_BOOKINGS,
    EfficiencyAnalyzer,
    analyze,
    generate_report,
)


def lesson(start: str, duration: int = 45, day: int = 1) -> Booking:
    return Booking(owner_id="t1", subject_id="s1", day=day, start_minutes=start, duration_minutes=duration)


def window(start: str, end: str, day: int = 1, window_id: str = "w1") -> AvailabilityWindow:
    return AvailabilityWindow(id=window_id, owner_id="t1", day=day, start_minutes=start, end_minutes=end)


@pytest.fixture
def analyzer() -> EfficiencyAnalyzer:
    return EfficiencyAnalyzer()


class TestUtilization:
    """Tests for utilization rate."""

    def test_half_booked(self, analyzer):
        assert analyzer.calculate_utilization(90, 180) == 50.0

    def test_no_availability(self, analyzer):
        assert analyzer.calculate_utilization(45, 0) == 0.0

    def test_clamped_to_hundred(self, analyzer):
        assert analyzer.calculate_utilization(300, 180) == 100.0

    def test_rounded(self, analyzer):
        assert analyzer.calculate_utilization(1, 3) == 33.33

    def test_bounds_over_reports(self, analyzer):
        cases = [([], [window("15:00", "16:30")]), ([lesson("15:00")], []),
                 ([lesson("15:00"), lesson("15:45"), lesson("16:30")], [window("15:00", "16:30")])]
        for bookings, windows in cases:
            report = analyzer.analyze(bookings, windows)
            assert 0 <= report.utilization_rate <= 100
            assert 0 <= report.back_to_back_percentage <= 100


class TestBackToBack:
    """Tests for back-to-back percentage."""

    def test_fewer_than_two(self, analyzer):
        assert analyzer.calculate_back_to_back([]) == 0.0
        assert analyzer.calculate_back_to_back([lesson("15:00")]) == 0.0

    def test_all_back_to_back(self, analyzer):
        assert analyzer.calculate_back_to_back([lesson("15:00"), lesson("15:45"), lesson("16:30")]) == 100.0

    def test_unsorted_input(self, analyzer):
        assert analyzer.calculate_back_to_back([lesson("16:30"), lesson("15:00"), lesson("15:45")]) == 100.0

    def test_gap_breaks_chain(self, analyzer):
        assert analyzer.calculate_back_to_back([lesson("15:00"), lesson("15:45"), lesson("17:00")]) == 50.0

    def test_pairs_across_days_never_count(self, analyzer):
        monday_last = lesson("15:00", day=1)
        tuesday_first = lesson("15:45", day=2)
        assert analyzer.calculate_back_to_back([monday_last, tuesday_first]) == 0.0


class TestPeakAndGapHours:
    """Tests for peak and gap hours."""

    def test_peak_hours_ranked(self, analyzer):
        bookings = [lesson("16:00"), lesson("16:45"), lesson("15:00"), lesson("17:30", day=2),
                    lesson("17:00", day=3), lesson("09:00", day=4)]
        # 16h: 2, 17h: 2, 15h: 1, 09h: 1
        assert analyzer.calculate_peak_hours(bookings) == ["16:00", "17:00", "09:00"]

    def test_peak_hours_count(self):
        analyzer = EfficiencyAnalyzer(peak_hours_count=1)
        assert analyzer.calculate_peak_hours([lesson("15:00"), lesson("16:00"), lesson("16:45")]) == ["16:00"]

    def test_no_bookings(self, analyzer):
        assert analyzer.calculate_peak_hours([]) == []

    def test_gap_hours(self, analyzer):
        bookings = [lesson("15:00"), lesson("16:00"), lesson("16:45"), lesson("18:00")]
        assert analyzer.calculate_gap_hours(bookings) == ["15:00", "17:00"]


class TestRecommendations:
    """Tests for threshold-based recommendations."""

    def test_low_utilization_and_few_back_to_back(self, analyzer):
        assert analyzer.recommend(30, 20) == [RECOMMEND_MORE_BOOKINGS, RECOMMEND_CONSOLIDATE]

    def test_high_utilization(self, analyzer):
        assert analyzer.recommend(95, 80) == [RECOMMEND_BREAKS]

    def test_healthy(self, analyzer):
        assert analyzer.recommend(75, 60) == []

    def test_thresholds_are_strict(self, analyzer):
        assert analyzer.recommend(60, 40) == []
        assert analyzer.recommend(90, 40) == []

    def test_custom_thresholds(self):
        analyzer = EfficiencyAnalyzer(EfficiencyThresholds(low_utilization=80))
        assert RECOMMEND_MORE_BOOKINGS in analyzer.recommend(75, 60)


class TestAnalyze:
    """Tests for the full report."""

    def test_report(self):
        bookings = [lesson("15:00"), lesson("15:45")]
        report = analyze(bookings, [window("15:00", "16:30"), window("15:00", "16:30", day=2, window_id="w2")])

        assert report.total_available_minutes == 180
        assert report.total_booked_minutes == 90
        assert report.utilization_rate == 50.0
        assert report.back_to_back_percentage == 100.0
        assert report.peak_hours == ["15:00"]
        assert report.recommendations == [RECOMMEND_MORE_BOOKINGS]

    def test_to_dict_and_text(self):
        report = analyze([lesson("15:00")], [window("15:00", "16:30")])
        data = report.to_dict()
        assert data["utilizationRate"] == 50.0
        assert data["totalBookedMinutes"] == 45
        assert "SCHEDULE EFFICIENCY REPORT" in generate_report(report)
