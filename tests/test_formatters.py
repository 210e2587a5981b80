"""Tests for console and JSON formatting."""

from __future__ import annotations

import json

import pytest

from lessonengine.data.models import Booking, TimeSlot
from lessonengine.output.efficiency import EfficiencyReport
from lessonengine.output.formatters import (
    conflicts_table,
    efficiency_panel,
    format_slot_list,
    render_text,
    save_json,
    slots_table,
    to_json,
)
from lessonengine.scheduling.conflicts import Conflict, ConflictType


@pytest.fixture
def slots() -> list[TimeSlot]:
    return [
        TimeSlot(id="w1:45:1500", day=1, start_minutes="15:00", duration_minutes=45, location="Room5"),
        TimeSlot(id="w1:45:1545", day=1, start_minutes="15:45", duration_minutes=45),
    ]


class TestPlainFormatting:
    """Tests for plain-text helpers."""

    def test_format_slot_list(self, slots):
        assert format_slot_list(slots) == (
            "Mon 15:00-15:45 (45 min) @ Room5\n"
            "Mon 15:45-16:30 (45 min)"
        )

    def test_empty_list(self):
        assert format_slot_list([]) == ""


class TestRichRenderables:
    """Tests for rich tables and panels."""

    def test_slots_table(self, slots):
        text = render_text(slots_table(slots))
        assert "15:00-15:45" in text
        assert "Room5" in text

    def test_conflicts_table(self):
        booked = Booking(id="b1", owner_id="t1", subject_id="s1", day=1, start_minutes="15:00", duration_minutes=45)
        text = render_text(conflicts_table([Conflict.of(ConflictType.TEACHER_DOUBLE_BOOKED, booked)]), width=160)
        assert "HIGH" in text
        assert "teacher_double_booked" in text

    def test_efficiency_panel(self):
        report = EfficiencyReport(utilization_rate=50.0, back_to_back_percentage=100.0,
                                  peak_hours=["15:00"], recommendations=["Add lessons"])
        text = render_text(efficiency_panel(report), width=120)
        assert "50.0%" in text
        assert "1. Add lessons" in text


class TestJson:
    """Tests for JSON serialization."""

    def test_to_json_list(self, slots):
        data = json.loads(to_json(slots))
        assert data[0]["startTime"] == "15:00"
        assert data[1]["id"] == "w1:45:1545"

    def test_to_json_nested_dict(self, slots):
        data = json.loads(to_json({"slots": slots, "count": 2}))
        assert data["count"] == 2
        assert data["slots"][0]["location"] == "Room5"

    def test_save_json(self, slots, tmp_path):
        path = tmp_path / "out" / "slots.json"
        save_json(slots, path)
        assert json.loads(path.read_text(encoding="utf-8"))[1]["endTime"] == "16:30"
