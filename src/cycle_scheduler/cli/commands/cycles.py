"""Cycle commands: create-cycle, activate, status, max-test."""

import warnings
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml

from ...core.engine import build_schedule, plan_max_testing, validate_cycle
from ...core.engine.config_loader import load_cycle_defaults
from ...core.engine.max_testing import MaxTestCandidate
from ...core.errors import ScheduleWarning, SchedulerError
from ...core.metrics import cycle_progress, next_pending_workout
from ...io.serializers import dict_to_cycle, validate_date
from .. import views
from ..app import DataDirOption, app, get_store


def _load_cycle_file(path: Path) -> dict:
    """Read a YAML cycle definition."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a cycle mapping")
    return data


@app.command("create-cycle")
def create_cycle(
    cycle_file: Annotated[
        Path,
        typer.Argument(help="YAML cycle definition", exists=True, dir_okay=False),
    ],
    activate: Annotated[
        bool,
        typer.Option("--activate", "-a", help="Make the new cycle the active one"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Create a training cycle from a YAML file and schedule all its workouts.

    Keys left out of the file are filled from defaults.yaml.  Minimal file:

      name: Spring block
      groups:
        - name: Pull day
          exercises: [pull_up, row]
        - name: Push day
          exercises: [dip, push_up]
    """
    store = get_store(data_dir)

    try:
        exercises = store.load_exercises()
        latest = store.latest_max_records()
        cycle = dict_to_cycle(_load_cycle_file(cycle_file), load_cycle_defaults())
    except (FileNotFoundError, yaml.YAMLError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    result = validate_cycle(cycle, exercises)
    for message in result.warnings:
        views.print_warning(message)
    if not result.valid:
        for message in result.errors:
            views.print_error(message)
        raise typer.Exit(1)

    cycle.status = "planning"
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ScheduleWarning)
            workouts = build_schedule(cycle, exercises, latest)
        store.save_cycle(cycle)
        store.save_workouts(workouts)
    except SchedulerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    for w in caught:
        views.print_warning(str(w.message))

    views.print_success(f"Created cycle {cycle.name} ({cycle.id}) with {len(workouts)} workouts")

    if activate:
        store.activate_cycle(cycle.id)
        views.print_success(f"Activated {cycle.name}")


@app.command()
def activate(
    cycle_id: Annotated[str, typer.Argument(help="Cycle ID")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Make a cycle the active one; the previous active cycle is completed.
    """
    store = get_store(data_dir)
    try:
        previous = store.get_active_cycle()
        cycle = store.activate_cycle(cycle_id)
    except (FileNotFoundError, SchedulerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if previous is not None and previous.id != cycle.id:
        views.print_info(f"Completed {previous.name}")
    views.print_success(f"Activated {cycle.name}")


@app.command()
def status(data_dir: DataDirOption = None) -> None:
    """
    Show progress through the active cycle.
    """
    store = get_store(data_dir)
    try:
        cycle = store.get_active_cycle()
        if cycle is None:
            views.print_info("No active cycle. Create one with 'create-cycle --activate'.")
            raise typer.Exit(0)
        workouts = store.load_workouts(cycle.id)
    except (FileNotFoundError, SchedulerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.console.print()
    views.console.print(
        views.format_cycle_status(cycle, cycle_progress(workouts), next_pending_workout(workouts))
    )
    views.console.print()


@app.command("max-test")
def max_test(
    exercise_ids: Annotated[list[str], typer.Argument(help="Exercise IDs to test")],
    base: Annotated[
        Optional[list[str]],
        typer.Option(
            "--base",
            help="New conditioning baseline as EXERCISE_ID=VALUE (repeatable)",
        ),
    ] = None,
    start: Annotated[
        Optional[str],
        typer.Option("--start", help="First test day (YYYY-MM-DD, default: today)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Plan a max-testing cycle for the given exercises.

    Exercises are spread so no day tests two of the same movement type.
    The new cycle becomes active.
    """
    store = get_store(data_dir)
    try:
        exercises = store.load_exercises()
        latest = store.latest_max_records()
        cycles = store.load_cycles()
    except (FileNotFoundError, SchedulerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    new_bases: dict[str, int] = {}
    for item in base or []:
        ex_id, sep, value = item.partition("=")
        if not sep or not value.strip().isdigit():
            views.print_error(f"Invalid --base {item!r}; expected EXERCISE_ID=VALUE")
            raise typer.Exit(1)
        new_bases[ex_id.strip()] = int(value)

    candidates: list[MaxTestCandidate] = []
    for ex_id in exercise_ids:
        if any(c.exercise.id == ex_id for c in candidates):
            views.print_warning(f"{ex_id} selected more than once; testing it once")
            continue
        exercise = exercises.get(ex_id)
        if exercise is None:
            views.print_error(f"Unknown exercise: {ex_id}")
            raise typer.Exit(1)
        candidates.append(
            MaxTestCandidate(
                exercise=exercise,
                previous_max=latest.get(ex_id),
                new_conditioning_base=new_bases.get(ex_id),
            )
        )

    previous = next((c for c in cycles if c.status == "active"), None)
    number = sum(1 for c in cycles if c.cycle_type == "max_testing") + 1

    try:
        start_date = validate_date(start) if start else None
        plan = plan_max_testing(candidates, previous, start_date=start_date, cycle_number=number)
        store.save_max_testing_plan(plan)
    except SchedulerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if plan.completed_cycle is not None:
        views.print_info(f"Completed {plan.completed_cycle.name}")
    for exercise in plan.updated_exercises:
        views.print_info(f"Updated conditioning baseline of {exercise.name}")
    views.print_success(f"Created {plan.cycle.name} with {len(plan.workouts)} test days")
    views.print_schedule(plan.cycle, plan.workouts, exercises, latest)
