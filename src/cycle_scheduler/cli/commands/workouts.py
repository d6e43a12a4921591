"""Workout commands: schedule, mark, regenerate, dedupe."""

import json
import warnings
from typing import Annotated, Optional

import typer

from ...core.engine import build_schedule, compute_set_target
from ...core.errors import ScheduleWarning, SchedulerError
from ...core.models import WORKOUT_STATUSES, OpenTarget
from .. import views
from ..app import DataDirOption, app, get_store


@app.command()
def schedule(
    week: Annotated[
        Optional[int],
        typer.Option("--week", "-w", help="Only show this week of the cycle"),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show the active cycle's workouts with targets from your latest maxes.
    """
    store = get_store(data_dir)
    try:
        cycle = store.get_active_cycle()
        if cycle is None:
            views.print_error("No active cycle")
            views.print_info("Create one with 'create-cycle FILE --activate'.")
            raise typer.Exit(1)
        exercises = store.load_exercises()
        latest = store.latest_max_records()
        workouts = store.load_workouts(cycle.id)
    except (FileNotFoundError, SchedulerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if week is not None:
        workouts = [w for w in workouts if w.week_number == week]

    if json_out:
        out = []
        for w in workouts:
            sets = []
            for s in w.scheduled_sets:
                exercise = exercises.get(s.exercise_id)
                target = (
                    compute_set_target(s, cycle, exercise, latest.get(s.exercise_id))
                    if exercise is not None else None
                )
                sets.append({
                    "exercise_id": s.exercise_id,
                    "set_number": s.set_number,
                    "warmup": s.is_warmup,
                    "measurement": s.measurement_type,
                    "target": target.value if isinstance(target, OpenTarget) else target,
                })
            out.append({
                "id": w.id,
                "sequence": w.sequence_number,
                "week": w.week_number,
                "day": w.day_in_week,
                "date": w.scheduled_date.isoformat() if w.scheduled_date else None,
                "group_id": w.group_id,
                "rfem": w.rfem,
                "status": w.status,
                "sets": sets,
            })
        print(json.dumps(out, indent=2))
        return

    views.print_schedule(cycle, workouts, exercises, latest)


@app.command()
def mark(
    sequence_number: Annotated[int, typer.Argument(help="Workout number (#) in the active cycle")],
    workout_status: Annotated[
        str,
        typer.Option("--status", "-s", help=f"New status: {', '.join(WORKOUT_STATUSES)}"),
    ] = "completed",
    reason: Annotated[
        Optional[str],
        typer.Option("--reason", "-r", help="Why the workout was skipped"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Set the status of a workout in the active cycle.
    """
    if workout_status not in WORKOUT_STATUSES:
        views.print_error(f"Status must be one of: {', '.join(WORKOUT_STATUSES)}")
        raise typer.Exit(1)

    store = get_store(data_dir)
    try:
        cycle = store.get_active_cycle()
        if cycle is None:
            views.print_error("No active cycle")
            raise typer.Exit(1)
        workout = next(
            (w for w in store.load_workouts(cycle.id)
             if w.sequence_number == sequence_number and not w.is_ad_hoc),
            None,
        )
        if workout is None:
            views.print_error(f"No workout #{sequence_number} in {cycle.name}")
            raise typer.Exit(1)
        store.update_workout_status(workout.id, workout_status, skip_reason=reason)
    except (FileNotFoundError, SchedulerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Workout #{sequence_number} marked {workout_status}")


@app.command()
def regenerate(data_dir: DataDirOption = None) -> None:
    """
    Rebuild the active cycle's remaining workouts.

    Workouts up to the last one you started or skipped are kept; later ones
    are rebuilt so warm-ups reflect your latest maxes.
    """
    store = get_store(data_dir)
    try:
        cycle = store.get_active_cycle()
        if cycle is None:
            views.print_error("No active cycle")
            raise typer.Exit(1)
        if cycle.cycle_type == "max_testing":
            views.print_error("Max-testing cycles cannot be regenerated; plan a new one with 'max-test'")
            raise typer.Exit(1)

        workouts = store.load_workouts(cycle.id)
        done = [w.sequence_number for w in workouts if not w.is_ad_hoc and w.status != "pending"]
        start_from = max(done, default=0) + 1
        if start_from > cycle.total_workouts:
            views.print_info("Nothing left to regenerate")
            raise typer.Exit(0)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ScheduleWarning)
            rebuilt = build_schedule(
                cycle,
                store.load_exercises(),
                store.latest_max_records(),
                start_from_workout=start_from,
            )
        store.replace_workouts(cycle.id, rebuilt, start_from_workout=start_from)
    except (FileNotFoundError, SchedulerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    for w in caught:
        views.print_warning(str(w.message))
    views.print_success(f"Rebuilt workouts #{start_from}-#{cycle.total_workouts} of {cycle.name}")


@app.command()
def dedupe(data_dir: DataDirOption = None) -> None:
    """
    Remove duplicate workouts left behind by repeated generation.

    Of several workouts at the same position, the one with a warm-up wins,
    then one already started, then the later id.
    """
    store = get_store(data_dir)
    try:
        result = store.reconcile_workouts()
    except (FileNotFoundError, SchedulerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not result.dropped:
        views.print_info("No duplicate workouts found")
        return
    views.print_success(f"Removed {result.dropped} duplicate workout(s)")
