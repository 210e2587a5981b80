"""
Command-line interface for the scheduling engine.

Usage:
    python -m lessonengine validate snapshot.json
    python -m lessonengine slots snapshot.json --teacher T001 -d 45
    python -m lessonengine check snapshot.json --teacher T001 --student S001 --day mon --start 15:00 --duration 45
    python -m lessonengine optimal snapshot.json --teacher T001 --student S001 --duration 45 --prefer 16:00
    python -m lessonengine pack snapshot.json --teacher T001 --duration 45
    python -m lessonengine analyze snapshot.json --teacher T001
    python -m lessonengine bulk snapshot.json --teacher T001 --request S001:45 --request S002:30
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .data.loader import DataValidationError, load_snapshot
from .data.models import Day, ScheduleSnapshot, TimeSlot
from .data.validation import validate_availability
from .engine import AvailabilityEngine
from .errors import SchedulingError
from .output.formatters import (
    conflicts_table,
    efficiency_panel,
    placements_table,
    slots_table,
    to_json,
)
from .scheduling.bulk import LessonRequest

# Create Typer app
app = typer.Typer(
    name="lessonengine",
    help="Lesson availability, conflict detection and schedule efficiency.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()

# Day name mappings (0=Sunday)
DAY_MAP = {day.name.lower(): day for day in Day}
DAY_MAP.update({day.name.lower()[:3]: day for day in Day})


# =============================================================================
# Helper Functions
# =============================================================================

def load_input(snapshot_path: Path) -> ScheduleSnapshot:
    """Load and validate a snapshot, exiting with a message on failure."""
    if not snapshot_path.exists():
        console.print(f"[red]Error:[/red] Snapshot file not found: {snapshot_path}")
        raise typer.Exit(code=1)

    try:
        return load_snapshot(snapshot_path)
    except (json.JSONDecodeError, DataValidationError, ValidationError) as e:
        console.print(f"[red]Error loading snapshot:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def parse_day(value: str) -> Day:
    """Parse a day given as 0-6 or as a (short) English name."""
    key = value.strip().lower()
    if key.isdigit() and 0 <= int(key) <= 6:
        return Day(int(key))
    if key in DAY_MAP:
        return DAY_MAP[key]
    raise typer.BadParameter(f"Unknown day: {value!r} (use 0-6 or a day name, 0=Sunday)")


def parse_request(value: str) -> LessonRequest:
    """Parse 'STUDENT:DURATION' into a lesson request."""
    student_id, sep, duration = value.rpartition(":")
    if not sep or not student_id or not duration.isdigit():
        raise typer.BadParameter(f"Expected STUDENT:DURATION, got {value!r}")
    return LessonRequest(student_id=student_id, duration=int(duration))


def engine_for(snapshot: ScheduleSnapshot, **overrides) -> AvailabilityEngine:
    """Engine configured from the snapshot, with CLI overrides applied."""
    updates = {k: v for k, v in overrides.items() if v is not None}
    config = snapshot.config.model_copy(update=updates) if updates else snapshot.config
    return AvailabilityEngine(config)


def fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(code=1)


# =============================================================================
# Commands
# =============================================================================

@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
) -> None:
    """Lesson scheduling engine."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@app.command()
def validate(
    snapshot_file: Path = typer.Argument(
        ...,
        help="Path to snapshot JSON file to validate",
    ),
) -> None:
    """
    Validate a snapshot: schema, references and availability consistency.

    Example:
        python -m lessonengine validate snapshot.json
    """
    console.print(f"\n[bold]Validating:[/bold] {snapshot_file}\n")

    console.print("[cyan]1. Validating against schema...[/cyan]")
    snapshot = load_input(snapshot_file)
    console.print("   [green]Schema validation passed[/green]")

    console.print("[cyan]2. Checking availability windows...[/cyan]")
    result = validate_availability(snapshot.windows, min_duration=min(snapshot.config.allowed_durations))

    for warning in result.warnings:
        console.print(f"   [yellow]Warning:[/yellow] {escape(warning)}")
    for error in result.errors:
        console.print(f"   [red]Error:[/red] {escape(error)}")
    if result.is_valid and not result.warnings:
        console.print("   [green]No availability issues[/green]")

    console.print("\n[bold]Summary:[/bold]")
    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")
    for key, value in snapshot.summary().items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)

    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command()
def slots(
    snapshot_file: Path = typer.Argument(..., help="Path to snapshot JSON file"),
    teacher: str = typer.Option(..., "--teacher", "-t", help="Teacher ID"),
    duration: Optional[list[int]] = typer.Option(
        None,
        "--duration", "-d",
        help="Lesson duration in minutes (repeatable; default from config)",
    ),
    step: Optional[int] = typer.Option(
        None,
        "--step",
        help="Sampling step in minutes",
        min=1,
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List free candidate slots in a teacher's availability."""
    snapshot = load_input(snapshot_file)
    engine = engine_for(snapshot, sample_step_minutes=step)

    try:
        candidates = engine.candidate_slots(
            snapshot.windows_for_teacher(teacher),
            snapshot.bookings_for_teacher(teacher),
            durations=duration,
        )
    except SchedulingError as e:
        fail(e)

    if as_json:
        console.print_json(to_json(candidates))
    else:
        console.print(slots_table(candidates, title=f"Candidate Slots for {teacher}"))


@app.command()
def check(
    snapshot_file: Path = typer.Argument(..., help="Path to snapshot JSON file"),
    teacher: str = typer.Option(..., "--teacher", "-t", help="Teacher ID"),
    student: str = typer.Option(..., "--student", "-s", help="Student ID"),
    day: str = typer.Option(..., "--day", help="Day (0-6 or name, 0=Sunday)"),
    start: str = typer.Option(..., "--start", help="Start time HH:MM"),
    duration: int = typer.Option(45, "--duration", "-d", help="Lesson duration in minutes"),
    location: Optional[str] = typer.Option(None, "--location", "-l", help="Room"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables"),
) -> None:
    """
    Check a proposed lesson for conflicts.

    Exits with code 1 when a blocking (high severity) conflict is found.
    """
    snapshot = load_input(snapshot_file)
    engine = engine_for(snapshot)

    try:
        proposed = TimeSlot(
            day=parse_day(day),
            start_minutes=start,
            duration_minutes=duration,
            location=location,
            owner_id=teacher,
            subject_id=student,
        )
    except ValidationError as e:
        fail(e)

    result = engine.check_snapshot(snapshot, proposed)

    if as_json:
        console.print_json(to_json(result))
    else:
        console.print(f"\n[bold]Proposed:[/bold] {proposed}")
        if result.conflicts:
            console.print(conflicts_table(result.conflicts))
        else:
            console.print("[green]No conflicts[/green]")
        if result.alternatives:
            console.print(slots_table(result.alternatives, title="Alternatives"))

    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def optimal(
    snapshot_file: Path = typer.Argument(..., help="Path to snapshot JSON file"),
    teacher: str = typer.Option(..., "--teacher", "-t", help="Teacher ID"),
    student: str = typer.Option(..., "--student", "-s", help="Student ID"),
    duration: int = typer.Option(45, "--duration", "-d", help="Lesson duration in minutes"),
    prefer: Optional[list[str]] = typer.Option(None, "--prefer", help="Preferred start time HH:MM (repeatable)"),
    buffer: Optional[int] = typer.Option(None, "--buffer", help="Minutes between candidates", min=0),
) -> None:
    """
    Suggest the best slots for a student with a teacher.

    Candidates must be free for the student and for the teacher.
    """
    snapshot = load_input(snapshot_file)
    engine = engine_for(snapshot, buffer_minutes=buffer)

    busy = [
        *snapshot.bookings_for_student(student),
        *snapshot.commitments_for_student(student),
        *snapshot.bookings_for_teacher(teacher),
    ]
    try:
        suggestions = engine.optimal_slots(
            snapshot.windows_for_teacher(teacher),
            busy,
            duration,
            preferred_start_times=prefer or (),
        )
    except SchedulingError as e:
        fail(e)

    console.print(slots_table(suggestions, title=f"Suggested Slots for {student}"))


@app.command()
def pack(
    snapshot_file: Path = typer.Argument(..., help="Path to snapshot JSON file"),
    teacher: str = typer.Option(..., "--teacher", "-t", help="Teacher ID"),
    duration: int = typer.Option(45, "--duration", "-d", help="Lesson duration in minutes"),
) -> None:
    """Propose back-to-back lesson blocks across a teacher's windows."""
    snapshot = load_input(snapshot_file)
    engine = engine_for(snapshot)

    try:
        packed = engine.back_to_back(snapshot.windows_for_teacher(teacher), duration)
    except SchedulingError as e:
        fail(e)

    console.print(slots_table(packed, title=f"Back-to-back Blocks for {teacher}"))


@app.command()
def analyze(
    snapshot_file: Path = typer.Argument(..., help="Path to snapshot JSON file"),
    teacher: str = typer.Option(..., "--teacher", "-t", help="Teacher ID"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a panel"),
) -> None:
    """Report a teacher's utilization and schedule efficiency."""
    snapshot = load_input(snapshot_file)
    engine = engine_for(snapshot)

    report = engine.analyze(
        snapshot.bookings_for_teacher(teacher),
        snapshot.windows_for_teacher(teacher),
    )

    if as_json:
        console.print_json(to_json(report))
    else:
        console.print(efficiency_panel(report, title=f"Schedule Efficiency: {teacher}"))


@app.command()
def bulk(
    snapshot_file: Path = typer.Argument(..., help="Path to snapshot JSON file"),
    teacher: str = typer.Option(..., "--teacher", "-t", help="Teacher ID"),
    request: list[str] = typer.Option(..., "--request", "-r", help="STUDENT:DURATION (repeatable)"),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Maximum solving time in seconds",
        min=0.1,
        max=600,
    ),
) -> None:
    """Place several lessons at once into a teacher's availability."""
    snapshot = load_input(snapshot_file)
    engine = engine_for(snapshot, bulk_time_limit_seconds=timeout)
    requests = [parse_request(r) for r in request]

    student_commitments = {
        r.student_id: [
            *snapshot.bookings_for_student(r.student_id),
            *snapshot.commitments_for_student(r.student_id),
        ]
        for r in requests
    }

    try:
        solution = engine.schedule_bulk(
            snapshot.windows_for_teacher(teacher),
            requests,
            teacher_bookings=snapshot.bookings_for_teacher(teacher),
            student_commitments=student_commitments,
        )
    except SchedulingError as e:
        fail(e)

    console.print(placements_table(solution))
    for unplaced in solution.unplaced:
        console.print(f"[yellow]Unplaced:[/yellow] {unplaced.student_id} ({unplaced.duration} min)")

    if not solution.is_feasible:
        raise typer.Exit(code=1)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
