"""Tests for CLI module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from lessonengine.cli import app, parse_day, parse_request
from lessonengine.data.models import Day


runner = CliRunner()


@pytest.fixture
def snapshot_data() -> dict:
    """Snapshot as a dictionary, camelCase like external callers send it."""
    return {
        "windows": [
            {"id": "mon", "ownerId": "t1", "day": 1, "startTime": "15:00", "endTime": "16:30", "location": "Room5"},
            {"id": "tue", "ownerId": "t1", "day": 2, "startTime": "16:00", "endTime": "18:00", "location": "Room5"},
        ],
        "bookings": [
            {"id": "b1", "teacherId": "t1", "studentId": "s1", "day": 1,
             "startTime": "15:00", "durationMinutes": 45, "location": "Room5"},
        ],
        "commitments": [
            {"id": "r1", "kind": "rehearsal", "subjectId": "s2", "day": 2,
             "startTime": "17:00", "endTime": "18:30"},
        ],
    }


@pytest.fixture
def snapshot_file(snapshot_data, tmp_path) -> Path:
    """Create a temporary snapshot file."""
    filepath = tmp_path / "snapshot.json"
    with open(filepath, "w") as f:
        json.dump(snapshot_data, f)
    return filepath


class TestHelpers:
    """Tests for argument parsing helpers."""

    @pytest.mark.parametrize("value, expected", [("1", 1), ("mon", 1), ("Monday", 1), ("sun", 0), ("6", 6)])
    def test_parse_day(self, value, expected):
        assert parse_day(value) == expected

    def test_parse_day_returns_weekday(self):
        assert parse_day("wed") is Day.WEDNESDAY
        assert parse_day("0") is Day.SUNDAY

    def test_parse_day_invalid(self):
        import typer
        with pytest.raises(typer.BadParameter):
            parse_day("7")

    def test_parse_request(self):
        request = parse_request("S001:45")
        assert request.student_id == "S001"
        assert request.duration == 45

    def test_parse_request_invalid(self):
        import typer
        with pytest.raises(typer.BadParameter):
            parse_request("S001")


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_snapshot(self, snapshot_file):
        result = runner.invoke(app, ["validate", str(snapshot_file)])
        assert result.exit_code == 0
        assert "Schema validation passed" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1

    def test_overlapping_windows_fail(self, snapshot_data, tmp_path):
        snapshot_data["windows"].append(
            {"id": "mon2", "ownerId": "t1", "day": 1, "startTime": "16:00", "endTime": "17:00"}
        )
        path = tmp_path / "overlap.json"
        path.write_text(json.dumps(snapshot_data))

        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "overlap" in result.output

    def test_verbose_flag(self, snapshot_file):
        result = runner.invoke(app, ["-v", "validate", str(snapshot_file)])
        assert result.exit_code == 0


class TestSlotsCommand:
    """Tests for the slots command."""

    def test_json_output(self, snapshot_file):
        result = runner.invoke(app, ["slots", str(snapshot_file), "--teacher", "t1", "-d", "45",
                                     "--step", "45", "--json"])
        assert result.exit_code == 0
        assert '"startTime": "15:45"' in result.output
        assert '"startTime": "15:00"' not in result.output.split('"day": 2')[0]

    def test_table_output(self, snapshot_file):
        result = runner.invoke(app, ["slots", str(snapshot_file), "--teacher", "t1"])
        assert result.exit_code == 0
        assert "Candidate Slots" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_clean_slot(self, snapshot_file):
        result = runner.invoke(app, ["check", str(snapshot_file), "--teacher", "t1", "--student", "s2",
                                     "--day", "mon", "--start", "15:45", "--duration", "45"])
        assert result.exit_code == 0
        assert "No conflicts" in result.output

    def test_blocking_conflict_exits_1(self, snapshot_file):
        result = runner.invoke(app, ["check", str(snapshot_file), "--teacher", "t1", "--student", "s2",
                                     "--day", "1", "--start", "15:00", "--duration", "45", "--json"])
        assert result.exit_code == 1
        assert "teacher_double_booked" in result.output
        assert "alternativeSlots" in result.output

    def test_advisory_conflict_exits_0(self, snapshot_file):
        result = runner.invoke(app, ["check", str(snapshot_file), "--teacher", "t1", "--student", "s2",
                                     "--day", "tue", "--start", "17:00", "--json"])
        assert result.exit_code == 0
        assert "rehearsal_conflict" in result.output

    def test_malformed_start(self, snapshot_file):
        result = runner.invoke(app, ["check", str(snapshot_file), "--teacher", "t1", "--student", "s2",
                                     "--day", "1", "--start", "3pm"])
        assert result.exit_code == 1


class TestSuggestionCommands:
    """Tests for optimal and pack commands."""

    def test_optimal(self, snapshot_file):
        result = runner.invoke(app, ["optimal", str(snapshot_file), "--teacher", "t1", "--student", "s2",
                                     "--duration", "45", "--prefer", "16:00"])
        assert result.exit_code == 0
        assert "Suggested Slots" in result.output

    def test_optimal_skips_teacher_bookings(self, snapshot_file):
        result = runner.invoke(app, ["optimal", str(snapshot_file), "--teacher", "t1", "--student", "s2",
                                     "--duration", "45"])
        assert result.exit_code == 0
        assert "tue:45:1600" in result.output
        assert "mon:45:1500" not in result.output

    def test_optimal_without_windows(self, snapshot_file):
        result = runner.invoke(app, ["optimal", str(snapshot_file), "--teacher", "nobody", "--student", "s2"])
        assert result.exit_code == 1
        assert "availability window" in result.output

    def test_pack(self, snapshot_file):
        result = runner.invoke(app, ["pack", str(snapshot_file), "--teacher", "t1", "--duration", "45"])
        assert result.exit_code == 0
        assert "Back-to-back" in result.output


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_json(self, snapshot_file):
        result = runner.invoke(app, ["analyze", str(snapshot_file), "--teacher", "t1", "--json"])
        assert result.exit_code == 0
        assert '"totalAvailableMinutes": 210' in result.output
        assert '"totalBookedMinutes": 45' in result.output

    def test_panel(self, snapshot_file):
        result = runner.invoke(app, ["analyze", str(snapshot_file), "--teacher", "t1"])
        assert result.exit_code == 0
        assert "Utilization" in result.output


class TestBulkCommand:
    """Tests for the bulk command."""

    def test_bulk(self, snapshot_file):
        result = runner.invoke(app, ["bulk", str(snapshot_file), "--teacher", "t1",
                                     "--request", "s2:45", "--request", "s3:30", "--timeout", "5"])
        assert result.exit_code == 0
        assert "Bulk Placement" in result.output

    def test_bad_request(self, snapshot_file):
        result = runner.invoke(app, ["bulk", str(snapshot_file), "--teacher", "t1", "--request", "s2"])
        assert result.exit_code != 0
