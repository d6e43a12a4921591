"""Exercise commands: init, add-exercise, list-exercises, log-max."""

import re
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.config import EXERCISE_TYPES
from ...core.errors import ValidationError
from ...core.models import Exercise, MaxRecord
from .. import views
from ..app import DataDirOption, app, get_store


def _slugify(name: str) -> str:
    """Derive an exercise id from its name: 'Pull-Up (strict)' → 'pull_up_strict'."""
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


@app.command()
def init(data_dir: DataDirOption = None) -> None:
    """
    Initialize the data directory.

    Existing data is left untouched.
    """
    store = get_store(data_dir)
    existed = store.exists()
    store.init()
    if existed:
        views.print_info(f"Data directory already initialized: {store.data_dir}")
    else:
        views.print_success(f"Initialized data directory: {store.data_dir}")


@app.command("add-exercise")
def add_exercise(
    name: Annotated[str, typer.Argument(help="Exercise name")],
    exercise_type: Annotated[
        str,
        typer.Option("--type", "-t", help=f"Movement type: {', '.join(EXERCISE_TYPES)}"),
    ],
    exercise_id: Annotated[
        Optional[str],
        typer.Option("--id", help="Exercise ID (default: derived from name)"),
    ] = None,
    conditioning: Annotated[
        bool,
        typer.Option("--conditioning", help="Fixed weekly progression instead of max-based"),
    ] = False,
    timed: Annotated[
        bool,
        typer.Option("--timed", help="Measured in seconds instead of reps"),
    ] = False,
    base: Annotated[
        Optional[int],
        typer.Option("--base", "-b", help="Conditioning baseline (reps or seconds)"),
    ] = None,
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Default added weight in kg (enables weight tracking)"),
    ] = None,
    notes: Annotated[str, typer.Option("--notes", help="Free-form notes")] = "",
    data_dir: DataDirOption = None,
) -> None:
    """
    Add or replace an exercise definition.

    Examples:

      cycle-scheduler add-exercise "Pull-Up" --type pull
      cycle-scheduler add-exercise "Plank" --type core --conditioning --timed --base 45
    """
    store = get_store(data_dir)
    ex_id = exercise_id or _slugify(name)
    if not ex_id:
        views.print_error("Cannot derive an exercise ID from that name; pass --id")
        raise typer.Exit(1)

    if base is not None and not conditioning:
        views.print_warning("--base only applies to conditioning exercises; ignored")
        base = None

    try:
        exercise = Exercise(
            id=ex_id,
            name=name,
            type=exercise_type,
            mode="conditioning" if conditioning else "standard",
            measurement_type="time" if timed else "reps",
            notes=notes,
            default_conditioning_reps=base if not timed else None,
            default_conditioning_time=base if timed else None,
            weight_enabled=weight is not None,
            default_weight=weight,
        )
        existing = store.load_exercises()
        store.save_exercise(exercise)
    except FileNotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    verb = "Updated" if ex_id in existing else "Added"
    views.print_success(f"{verb} exercise {exercise.name} ({ex_id})")


@app.command("list-exercises")
def list_exercises(data_dir: DataDirOption = None) -> None:
    """
    List exercises with their latest max.
    """
    store = get_store(data_dir)
    try:
        exercises = store.load_exercises()
        latest = store.latest_max_records()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_exercises(exercises, latest)


@app.command("log-max")
def log_max(
    exercise_id: Annotated[str, typer.Argument(help="Exercise ID")],
    value: Annotated[int, typer.Argument(help="Max reps, or seconds for timed exercises")],
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Added weight in kg"),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="Date of the test (YYYY-MM-DD, default: now)"),
    ] = None,
    notes: Annotated[str, typer.Option("--notes", help="Free-form notes")] = "",
    data_dir: DataDirOption = None,
) -> None:
    """
    Record a new max for an exercise.

    All RFEM targets and warm-ups are derived from the latest max.
    """
    store = get_store(data_dir)
    try:
        exercises = store.load_exercises()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    exercise = exercises.get(exercise_id)
    if exercise is None:
        views.print_error(f"Unknown exercise: {exercise_id}")
        raise typer.Exit(1)
    if exercise.is_conditioning:
        views.print_warning(f"{exercise.name} is a conditioning exercise; its targets ignore maxes")

    try:
        recorded_at = datetime.strptime(date, "%Y-%m-%d") if date else datetime.now()
    except ValueError:
        views.print_error(f"Invalid date format: {date}. Expected YYYY-MM-DD")
        raise typer.Exit(1)

    try:
        record = MaxRecord(
            exercise_id=exercise.id,
            recorded_at=recorded_at,
            max_reps=value if not exercise.is_time_based else None,
            max_time=value if exercise.is_time_based else None,
            weight=weight,
            notes=notes,
        )
        store.append_max_record(record)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(
        f"Logged max for {exercise.name}: {views.format_max(record, exercise)}"
    )
