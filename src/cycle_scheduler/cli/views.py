"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of exercises, cycles and schedules.
Targets are computed here, at display time, from the latest max records.
"""

from itertools import groupby
from typing import Mapping

from rich.console import Console
from rich.table import Table

from ..core.config import EXERCISE_TYPE_LABELS, PROGRESSION_MODE_LABELS
from ..core.engine.progression import compute_set_target, compute_set_weight
from ..core.metrics import CycleProgress
from ..core.models import (
    MAX_ATTEMPT,
    UNESTABLISHED,
    Cycle,
    Exercise,
    MaxRecord,
    MeasurementType,
    OpenTarget,
    ScheduledSet,
    ScheduledWorkout,
)

console = Console()

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_STATUS_STYLE = {
    "pending": "white",
    "partial": "yellow",
    "completed": "green",
    "skipped": "dim",
}


def format_amount(value: float, measurement_type: MeasurementType) -> str:
    """Render reps as a count and time as seconds."""
    if measurement_type == "time":
        return f"{value:g}s"
    return f"{value:g}"


def format_target(target: int | OpenTarget, measurement_type: MeasurementType) -> str:
    """
    Render a set target.

    Open targets are spelled out; they are never shown as zero.
    """
    if target is UNESTABLISHED:
        return "not yet established"
    if target is MAX_ATTEMPT:
        return "max"
    return format_amount(target, measurement_type)


def format_max(record: MaxRecord | None, exercise: Exercise) -> str:
    if record is None:
        return "-"
    value = record.value_for(exercise.measurement_type)
    if value is None:
        return "-"
    text = format_amount(value, exercise.measurement_type)
    if record.weight:
        text += f" +{record.weight:g}kg"
    return text


def _format_set(
    s: ScheduledSet,
    cycle: Cycle,
    exercise: Exercise,
    current_max: MaxRecord | None,
) -> str:
    target = format_target(
        compute_set_target(s, cycle, exercise, current_max), s.measurement_type
    )
    weight = compute_set_weight(s, exercise, current_max)
    if weight:
        target += f" +{weight:g}kg"
    if s.is_warmup:
        return f"wu {target}"
    return target


def format_workout_sets(
    workout: ScheduledWorkout,
    cycle: Cycle,
    exercises: Mapping[str, Exercise],
    latest: Mapping[str, MaxRecord],
) -> str:
    """One line per exercise: name followed by its set targets in order."""
    lines = []
    for exercise_id, sets in groupby(workout.scheduled_sets, key=lambda s: s.exercise_id):
        exercise = exercises.get(exercise_id)
        if exercise is None:
            lines.append(f"{exercise_id}: (deleted exercise)")
            continue
        current_max = latest.get(exercise_id)
        cells = [_format_set(s, cycle, exercise, current_max) for s in sets]
        lines.append(f"{exercise.name}: {', '.join(cells)}")
    return "\n".join(lines) if lines else "-"


def format_exercise_table(
    exercises: Mapping[str, Exercise],
    latest: Mapping[str, MaxRecord],
) -> Table:
    """
    Create a Rich table listing exercises with their current max.

    Args:
        exercises: Exercises by id
        latest: Latest MaxRecord per exercise id

    Returns:
        Rich Table object
    """
    table = Table(title="Exercises")

    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Mode")
    table.add_column("Measured")
    table.add_column("Max", justify="right", style="bold")

    for exercise in exercises.values():
        table.add_row(
            exercise.id,
            exercise.name,
            EXERCISE_TYPE_LABELS.get(exercise.type, exercise.type),
            exercise.mode,
            exercise.measurement_type,
            format_max(latest.get(exercise.id), exercise) if not exercise.is_conditioning else "n/a",
        )

    return table


def format_schedule_table(
    cycle: Cycle,
    workouts: list[ScheduledWorkout],
    exercises: Mapping[str, Exercise],
    latest: Mapping[str, MaxRecord],
) -> Table:
    """
    Create a Rich table showing a cycle's workouts with live targets.

    Args:
        cycle: Cycle the workouts belong to
        workouts: Workouts to display, in sequence order
        exercises: Exercises by id
        latest: Latest MaxRecord per exercise id

    Returns:
        Rich Table object
    """
    table = Table(title=cycle.name, show_lines=True)

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Wk", justify="right", style="dim", width=3)
    table.add_column("Day", justify="right", width=3)
    if cycle.scheduling_mode == "date":
        table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Group", style="magenta")
    table.add_column("RFEM", justify="right")
    table.add_column("Sets")
    table.add_column("Status")

    for w in workouts:
        group = cycle.group_by_id(w.group_id)
        name = w.custom_name or (group.name if group else w.group_id)
        style = _STATUS_STYLE.get(w.status, "white")
        row = [str(w.sequence_number), str(w.week_number), str(w.day_in_week)]
        if cycle.scheduling_mode == "date":
            row.append(
                f"{w.scheduled_date:%m.%d}({WEEKDAY_NAMES[w.scheduled_date.weekday()]})"
                if w.scheduled_date else "-"
            )
        row += [
            name,
            str(w.rfem),
            format_workout_sets(w, cycle, exercises, latest),
            f"[{style}]{w.status}[/{style}]",
        ]
        table.add_row(*row)

    return table


def format_cycle_status(
    cycle: Cycle,
    progress: CycleProgress,
    next_workout: ScheduledWorkout | None,
) -> str:
    """
    Format cycle status as text block.

    Args:
        cycle: Active cycle
        progress: Completed/skipped counts
        next_workout: Next workout to do, if any

    Returns:
        Formatted string
    """
    lines = [f"[bold]{cycle.name}[/bold]"]
    if cycle.cycle_type == "max_testing":
        lines.append("- Type: max testing")
    else:
        lines.append(f"- Progression: {PROGRESSION_MODE_LABELS.get(cycle.progression_mode, cycle.progression_mode)}")
        lines.append(
            f"- Length: {cycle.number_of_weeks} weeks × {cycle.workout_days_per_week} days"
        )
    lines.append(f"- Started: {cycle.start_date.isoformat()}")
    lines.append(
        f"- Progress: {progress.passed}/{progress.total} "
        f"({progress.completed} done, {progress.skipped} skipped, {progress.fraction:.0%})"
    )

    if next_workout is None:
        lines.append("- Next: all workouts done")
    else:
        group = cycle.group_by_id(next_workout.group_id)
        name = next_workout.custom_name or (group.name if group else next_workout.group_id)
        lines.append(
            f"- Next: #{next_workout.sequence_number} {name} "
            f"(week {next_workout.week_number}, RFEM {next_workout.rfem})"
        )

    return "\n".join(lines)


def print_exercises(exercises: Mapping[str, Exercise], latest: Mapping[str, MaxRecord]) -> None:
    """
    Print the exercise list to console.

    Args:
        exercises: Exercises by id
        latest: Latest MaxRecord per exercise id
    """
    if not exercises:
        console.print("[yellow]No exercises defined yet.[/yellow]")
        return

    console.print(format_exercise_table(exercises, latest))


def print_schedule(
    cycle: Cycle,
    workouts: list[ScheduledWorkout],
    exercises: Mapping[str, Exercise],
    latest: Mapping[str, MaxRecord],
) -> None:
    """Print a cycle's schedule to console."""
    if not workouts:
        console.print("[yellow]No workouts scheduled for this cycle.[/yellow]")
        return

    console.print(format_schedule_table(cycle, workouts, exercises, latest))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
