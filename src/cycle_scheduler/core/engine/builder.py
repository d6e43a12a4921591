"""
Schedule generation for cycle-scheduler.

Expands a cycle's declarative configuration into the full, ordered list
of ScheduledWorkouts.  The build is deterministic: identical inputs give
an identical schedule (identifiers aside, which come from id_factory).

Pipeline per workout:
    rotation skeleton → group assignments → warm-up (optional)
    → working sets carrying their progression detail
"""

from itertools import groupby
from typing import Callable, Mapping

from ..config import EXERCISE_TYPES
from ..errors import ConfigurationError, warn
from ..models import (
    Cycle,
    Exercise,
    ExerciseAssignment,
    Group,
    MaxRecord,
    RfemDetail,
    ScheduledSet,
    ScheduledWorkout,
    SetDetail,
    SimpleDetail,
    SimpleProgression,
    new_id,
)
from .conditioning import conditioning_detail
from .progression import resolve_exercise_mode
from .rotation import DaySlot, calculate_workout_dates, cycle_skeleton
from .warmup import make_warmup_set, warmups_enabled


def build_schedule(
    cycle: Cycle,
    exercises: Mapping[str, Exercise],
    max_records: Mapping[str, MaxRecord],
    groups: list[Group] | None = None,
    start_from_workout: int = 1,
    id_factory: Callable[[], str] = new_id,
) -> list[ScheduledWorkout]:
    """
    Generate every workout of a training cycle.

    Args:
        cycle: Cycle to expand
        exercises: Exercise lookup by id
        max_records: Latest MaxRecord per exercise id
        groups: Groups to use instead of cycle.groups
        start_from_workout: Return only workouts with sequence number ≥ this
            (partial regeneration; numbering is unchanged)
        id_factory: Identifier source for workouts and sets

    Returns:
        Workouts in sequence order, number_of_weeks × workout_days_per_week
        long when start_from_workout is 1

    Raises:
        ConfigurationError: Empty rotation, no schedulable days, unknown
            group in the rotation, or a max-testing cycle
    """
    if cycle.cycle_type == "max_testing":
        raise ConfigurationError("Max-testing cycles are planned with plan_max_testing()")
    if cycle.number_of_weeks < 1 or cycle.workout_days_per_week < 1:
        raise ConfigurationError(
            f"Cycle {cycle.name!r} has no schedulable days "
            f"({cycle.number_of_weeks} weeks × {cycle.workout_days_per_week} days)"
        )

    slots = cycle_skeleton(cycle)
    groups_by_id = {g.id: g for g in (groups if groups is not None else cycle.groups)}
    for group_id in cycle.group_rotation:
        if group_id not in groups_by_id:
            raise ConfigurationError(f"Group {group_id} in rotation not found in cycle")

    dates = []
    if cycle.scheduling_mode == "date" and cycle.selected_days:
        # One extra week covers a partial first calendar week.
        dates = calculate_workout_dates(
            cycle.start_date, cycle.number_of_weeks + 1, cycle.selected_days
        )

    warned: set[tuple[str, str]] = set()
    occurrences: dict[str, int] = {}
    workouts: list[ScheduledWorkout] = []

    for _, week_iter in groupby(slots, key=lambda s: s.week_number):
        week_slots = list(week_iter)
        week_groups = [groups_by_id[s.group_id] for s in week_slots]
        set_counts = _working_set_counts(week_slots, week_groups, cycle, exercises)

        for slot, group, counts in zip(week_slots, week_groups, set_counts):
            scheduled_sets = _build_sets(
                slot, group, cycle, exercises, max_records, counts,
                occurrences, warned, id_factory,
            )
            workout = ScheduledWorkout(
                cycle_id=cycle.id,
                sequence_number=slot.sequence_number,
                week_number=slot.week_number,
                day_in_week=slot.day_in_week,
                group_id=group.id,
                rfem=slot.rfem_value,
                scheduled_sets=scheduled_sets,
                id=id_factory(),
            )
            if slot.sequence_number <= len(dates):
                workout.scheduled_date = dates[slot.sequence_number - 1]
            if slot.sequence_number >= start_from_workout:
                workouts.append(workout)

    return workouts


def _assignments_of_type(
    group: Group,
    exercise_type: str,
    exercises: Mapping[str, Exercise],
) -> list[ExerciseAssignment]:
    """Assignments in the group whose (known) exercise has the given movement type."""
    result = []
    for a in group.exercise_assignments:
        exercise = exercises.get(a.exercise_id)
        if exercise is not None and exercise.type == exercise_type:
            result.append(a)
    return result


def _working_set_counts(
    week_slots: list[DaySlot],
    week_groups: list[Group],
    cycle: Cycle,
    exercises: Mapping[str, Exercise],
) -> list[dict[str, int]]:
    """
    Working sets per exercise for each day of one week.

    Without weekly set goals every assignment gets one working set.  With
    goals, a type's weekly total is split evenly over the days that train
    it; remainder sets go to the highest-RFEM days (ties by day order).
    Within a day the sets are dealt round-robin over the type's exercises,
    offset by how often the group already appeared this week.
    """
    if cycle.weekly_set_goals is None:
        return [
            {a.exercise_id: 1 for a in group.exercise_assignments}
            for group in week_groups
        ]

    counts: list[dict[str, int]] = [{} for _ in week_slots]

    group_offsets: list[int] = []
    seen: dict[str, int] = {}
    for group in week_groups:
        group_offsets.append(seen.get(group.id, 0))
        seen[group.id] = seen.get(group.id, 0) + 1

    for exercise_type in EXERCISE_TYPES:
        total = cycle.weekly_set_goals.get(exercise_type, 0)
        if total <= 0:
            continue

        available = [_assignments_of_type(g, exercise_type, exercises) for g in week_groups]
        eligible = [i for i, a in enumerate(available) if a]
        if not eligible:
            warn(f"No days train {exercise_type} exercises, but the weekly goal is {total} sets")
            continue

        base, remainder = divmod(total, len(eligible))
        day_sets = {i: base for i in eligible}
        for i in sorted(eligible, key=lambda i: -week_slots[i].rfem_value)[:remainder]:
            day_sets[i] += 1

        for i in eligible:
            options = available[i]
            for k in range(day_sets[i]):
                chosen = options[(k + group_offsets[i]) % len(options)]
                counts[i][chosen.exercise_id] = counts[i].get(chosen.exercise_id, 0) + 1

    return counts


def _working_detail(
    slot: DaySlot,
    cycle: Cycle,
    exercise: Exercise,
    assignment: ExerciseAssignment,
    occurrence_index: int,
) -> SetDetail:
    """Resolve the exercise's progression once and capture its parameters."""
    if exercise.is_conditioning:
        return conditioning_detail(assignment, exercise, slot.week_number)

    if resolve_exercise_mode(cycle.progression_mode, assignment) == "simple":
        value = assignment.simple_time if exercise.is_time_based else assignment.simple_reps
        return SimpleDetail(
            value=value if value is not None else SimpleProgression(),
            week_number=slot.week_number,
            occurrence_index=occurrence_index,
            weight=assignment.simple_weight,
        )

    return RfemDetail(rfem_value=slot.rfem_value)


def _build_sets(
    slot: DaySlot,
    group: Group,
    cycle: Cycle,
    exercises: Mapping[str, Exercise],
    max_records: Mapping[str, MaxRecord],
    counts: dict[str, int],
    occurrences: dict[str, int],
    warned: set[tuple[str, str]],
    id_factory: Callable[[], str],
) -> list[ScheduledSet]:
    """Emit warm-up and working sets for one workout, numbered from 1."""
    scheduled_sets: list[ScheduledSet] = []
    set_number = 1
    used: set[str] = set()

    for assignment in group.exercise_assignments:
        exercise = exercises.get(assignment.exercise_id)
        if exercise is None:
            key = (group.id, assignment.exercise_id)
            if key not in warned:
                warned.add(key)
                warn(
                    f"Skipping unknown exercise {assignment.exercise_id} "
                    f"in group {group.name!r}"
                )
            continue
        if exercise.id in used:
            continue
        used.add(exercise.id)

        n_sets = counts.get(exercise.id, 0)
        if n_sets == 0:
            continue

        if warmups_enabled(cycle, exercise, assignment):
            warmup = make_warmup_set(
                exercise, max_records.get(exercise.id), set_number, id_factory=id_factory
            )
            if warmup is not None:
                scheduled_sets.append(warmup)
                set_number += 1

        detail = _working_detail(slot, cycle, exercise, assignment, occurrences.get(exercise.id, 0))
        for _ in range(n_sets):
            scheduled_sets.append(
                ScheduledSet(
                    exercise_id=exercise.id,
                    exercise_type=exercise.type,
                    measurement_type=exercise.measurement_type,
                    set_number=set_number,
                    detail=detail,
                    id=id_factory(),
                )
            )
            set_number += 1
        occurrences[exercise.id] = occurrences.get(exercise.id, 0) + 1

    return scheduled_sets
