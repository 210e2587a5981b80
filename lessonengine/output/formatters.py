"""
Console and JSON formatting for engine results.

Rich renderables are built here and printed by the CLI; the plain and
JSON helpers are usable without a terminal.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lessonengine.data.models import TimeSlot
from lessonengine.intervals import DAY_ABBREV
from lessonengine.scheduling.bulk import BulkSolution, SolverStatus
from lessonengine.scheduling.conflicts import Conflict, Severity

from .efficiency import EfficiencyReport


SEVERITY_STYLES = {
    Severity.HIGH: "bold red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}


def _day(day: int) -> str:
    return DAY_ABBREV[day] if 0 <= day < len(DAY_ABBREV) else f"D{day}"


# =============================================================================
# Rich Renderables
# =============================================================================

def slots_table(slots: Sequence[TimeSlot], title: str = "Candidate Slots") -> Table:
    """Table of slots ordered as given."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Day", style="dim")
    table.add_column("Time")
    table.add_column("Min", justify="right")
    table.add_column("Location")
    table.add_column("ID", style="dim")

    for slot in slots:
        table.add_row(
            _day(slot.day),
            f"{slot.start_time}-{slot.end_time}",
            str(slot.duration_minutes),
            slot.location or "-",
            slot.id or "-",
        )
    return table


def conflicts_table(conflicts: Sequence[Conflict]) -> Table:
    """Table of conflicts with severity colouring."""
    table = Table(title="Conflicts", show_header=True, header_style="bold cyan")
    table.add_column("Severity")
    table.add_column("Type")
    table.add_column("Conflicting Slot")
    table.add_column("Message")

    for conflict in conflicts:
        table.add_row(
            Text(conflict.severity.value.upper(), style=SEVERITY_STYLES[conflict.severity]),
            conflict.type.value,
            str(conflict.conflicting_slot),
            conflict.message,
        )
    return table


def efficiency_panel(report: EfficiencyReport, title: str = "Schedule Efficiency") -> Panel:
    """Panel summarising an efficiency report."""
    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row(
        "Utilization",
        f"{report.utilization_rate:.1f}% ({report.total_booked_minutes}/{report.total_available_minutes} min)",
    )
    table.add_row("Back-to-back", f"{report.back_to_back_percentage:.1f}%")
    table.add_row("Peak hours", ", ".join(report.peak_hours) or "-")
    table.add_row("Gap hours", ", ".join(report.gap_hours) or "-")
    for i, rec in enumerate(report.recommendations, 1):
        table.add_row("Recommendation" if i == 1 else "", f"{i}. {rec}")

    return Panel(table, title=title)


def placements_table(solution: BulkSolution) -> Table:
    """Table of bulk placements."""
    status_ok = solution.status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE)
    table = Table(
        title=f"Bulk Placement ({solution.status.value})",
        show_header=True,
        header_style="bold cyan" if status_ok else "bold red",
    )
    table.add_column("Student")
    table.add_column("Day", style="dim")
    table.add_column("Time")
    table.add_column("Window", style="dim")

    for placement in solution.placements:
        table.add_row(
            placement.request.student_id,
            _day(placement.slot.day),
            f"{placement.slot.start_time}-{placement.slot.end_time}",
            placement.window_id,
        )
    return table


def render_text(renderable: Any, width: int = 100) -> str:
    """Render a rich object to plain text."""
    console = Console(record=True, width=width)
    console.print(renderable)
    return console.export_text()


# =============================================================================
# Plain / JSON
# =============================================================================

def format_slot_list(slots: Sequence[TimeSlot]) -> str:
    """One line per slot, e.g. 'Mon 15:45-16:30 (45 min) @ Room5'."""
    lines = []
    for slot in slots:
        where = f" @ {slot.location}" if slot.location else ""
        lines.append(f"{_day(slot.day)} {slot.start_time}-{slot.end_time} ({slot.duration_minutes} min){where}")
    return "\n".join(lines)


def to_json(data: Any, indent: int = 2) -> str:
    """Serialize engine results (anything with to_dict, or lists of them)."""
    return json.dumps(_jsonable(data), indent=indent, ensure_ascii=False)


def save_json(data: Any, filepath: str | Path, indent: int = 2) -> None:
    """Write engine results to a JSON file, creating parent directories."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(to_json(data, indent=indent))


def _jsonable(data: Any) -> Any:
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, (list, tuple)):
        return [_jsonable(item) for item in data]
    if isinstance(data, dict):
        return {k: _jsonable(v) for k, v in data.items()}
    return data
