"""
Max-testing cycle planning.

A separate entry point from the recurring scheduler.  Standard exercises
are spread over the fewest days such that no day tests two exercises of
the same movement type; conditioning exercises only get a new baseline.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable

from ..config import (
    MAX_TEST_CYCLE_NAME,
    MAX_TEST_DAY_NAME,
    MAX_TEST_RFEM,
    MAX_TEST_SINGLE_DAY_NAME,
    MAX_TEST_WARMUP_PERCENTAGE,
)
from ..errors import ValidationError
from ..models import (
    Cycle,
    Exercise,
    ExerciseAssignment,
    Group,
    MaxRecord,
    MaxTestDetail,
    ScheduledSet,
    ScheduledWorkout,
    new_id,
)
from .warmup import make_warmup_set


@dataclass
class MaxTestCandidate:
    """
    An exercise the athlete wants to re-test.

    previous_max sizes the warm-up of standard exercises.
    new_conditioning_base replaces the stored baseline of a conditioning
    exercise (reps or seconds, matching its measurement type).
    """

    exercise: Exercise
    previous_max: MaxRecord | None = None
    new_conditioning_base: int | None = None


@dataclass
class MaxTestingPlan:
    """Result of plan_max_testing(); the caller persists it as one unit."""

    cycle: Cycle
    workouts: list[ScheduledWorkout]
    completed_cycle: Cycle | None = None  # previous active cycle, demoted
    updated_exercises: list[Exercise] = field(default_factory=list)


def distribute_by_movement_type(exercises: list[Exercise]) -> list[list[Exercise]]:
    """
    Spread exercises over days, at most one per movement type per day.

    The i-th exercise of each type goes to day i, so the number of days
    equals the size of the largest type bucket.  Types keep the order in
    which they first appear.

    Args:
        exercises: Standard exercises to test

    Returns:
        One list of exercises per day
    """
    by_type: dict[str, list[Exercise]] = {}
    for ex in exercises:
        by_type.setdefault(ex.type, []).append(ex)

    number_of_days = max([1] + [len(bucket) for bucket in by_type.values()])
    days: list[list[Exercise]] = [[] for _ in range(number_of_days)]
    for bucket in by_type.values():
        for i, ex in enumerate(bucket):
            days[i].append(ex)

    return [d for d in days if d]


def _day_name(day_index: int, number_of_days: int) -> str:
    if number_of_days == 1:
        return MAX_TEST_SINGLE_DAY_NAME
    return MAX_TEST_DAY_NAME.format(n=day_index + 1)


def _updated_baseline(candidate: MaxTestCandidate) -> Exercise | None:
    """Copy of a conditioning exercise with its new baseline, or None if unchanged."""
    new_base = candidate.new_conditioning_base
    ex = candidate.exercise
    if new_base is None:
        return None
    if ex.is_time_based:
        if new_base == ex.default_conditioning_time:
            return None
        return replace(ex, default_conditioning_time=new_base)
    if new_base == ex.default_conditioning_reps:
        return None
    return replace(ex, default_conditioning_reps=new_base)


def plan_max_testing(
    selected: list[MaxTestCandidate],
    previous_cycle: Cycle | None = None,
    start_date: date | None = None,
    cycle_number: int = 1,
    id_factory: Callable[[], str] = new_id,
    now: datetime | None = None,
) -> MaxTestingPlan:
    """
    Plan a one-week max-testing cycle.

    Each standard exercise gets, on its day, a warm-up at 20% of the
    previous max (only if one exists) followed by a max attempt.  The new
    cycle is active; a previously active cycle is returned as completed.
    An exercise selected more than once is tested once, using its first
    candidate.

    Args:
        selected: Exercises chosen for testing
        previous_cycle: Cycle this max test follows, if any
        start_date: First day (defaults to today)
        cycle_number: Used in the cycle name "Max Testing Cycle N"
        id_factory: Identifier source
        now: Timestamp for created/updated fields

    Returns:
        MaxTestingPlan with the new cycle and its workouts

    Raises:
        ValidationError: No standard exercise selected, or nothing to schedule
    """
    unique: dict[str, MaxTestCandidate] = {}
    for c in selected:
        unique.setdefault(c.exercise.id, c)
    standard = [c for c in unique.values() if not c.exercise.is_conditioning]
    conditioning = [c for c in unique.values() if c.exercise.is_conditioning]

    if not standard:
        raise ValidationError("Select at least one standard exercise to test")

    days = distribute_by_movement_type([c.exercise for c in standard])
    if not days:
        raise ValidationError("Nothing to schedule")

    now = now or datetime.now()
    start_date = start_date or now.date()
    previous_by_exercise = {c.exercise.id: c.previous_max for c in standard}

    cycle_id = id_factory()
    groups: list[Group] = []
    workouts: list[ScheduledWorkout] = []

    for day_index, day_exercises in enumerate(days):
        group = Group(
            id=id_factory(),
            name=_day_name(day_index, len(days)),
            exercise_assignments=[ExerciseAssignment(exercise_id=ex.id) for ex in day_exercises],
        )
        groups.append(group)

        sets: list[ScheduledSet] = []
        for ex in day_exercises:
            record = previous_by_exercise.get(ex.id)
            previous_value = record.value_for(ex.measurement_type) if record else None

            warmup = make_warmup_set(
                ex, previous_value, len(sets) + 1,
                percentage=MAX_TEST_WARMUP_PERCENTAGE, id_factory=id_factory,
            )
            if warmup is not None:
                sets.append(warmup)
            sets.append(
                ScheduledSet(
                    exercise_id=ex.id,
                    exercise_type=ex.type,
                    measurement_type=ex.measurement_type,
                    set_number=len(sets) + 1,
                    detail=MaxTestDetail(previous_max=previous_value),
                    id=id_factory(),
                )
            )

        workouts.append(
            ScheduledWorkout(
                cycle_id=cycle_id,
                sequence_number=day_index + 1,
                week_number=1,
                day_in_week=day_index + 1,
                group_id=group.id,
                rfem=MAX_TEST_RFEM,
                scheduled_sets=sets,
                id=id_factory(),
            )
        )

    cycle = Cycle(
        id=cycle_id,
        name=MAX_TEST_CYCLE_NAME.format(n=cycle_number),
        start_date=start_date,
        number_of_weeks=1,
        workout_days_per_week=len(groups),
        groups=groups,
        group_rotation=[g.id for g in groups],
        rfem_rotation=[MAX_TEST_RFEM],
        cycle_type="max_testing",
        conditioning_weekly_rep_increment=0,
        conditioning_weekly_time_increment=0,
        previous_cycle_id=previous_cycle.id if previous_cycle else None,
        status="active",
        created_at=now,
        updated_at=now,
    )

    completed = None
    if previous_cycle is not None and previous_cycle.status == "active":
        completed = replace(previous_cycle, status="completed", updated_at=now)

    updated = [u for u in (_updated_baseline(c) for c in conditioning) if u is not None]

    return MaxTestingPlan(
        cycle=cycle,
        workouts=workouts,
        completed_cycle=completed,
        updated_exercises=updated,
    )
