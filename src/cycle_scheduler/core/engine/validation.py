"""
Cycle configuration checks.

validate_cycle() collects blocking errors and informational warnings
before a cycle is saved.  ensure_cycle_mutable() guards groups and
rotations once workouts have been generated from them.
"""

from dataclasses import dataclass, field
from typing import Mapping

from ..config import MAX_CYCLE_WEEKS, MAX_DAYS_PER_WEEK, MIN_CYCLE_WEEKS, MIN_DAYS_PER_WEEK
from ..errors import ConfigurationError
from ..models import Cycle, Exercise, ScheduledWorkout
from .progression import resolve_exercise_mode


@dataclass
class CycleValidation:
    """Outcome of validate_cycle()."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise ConfigurationError listing every error, if any."""
        if self.errors:
            raise ConfigurationError("; ".join(self.errors))


def validate_cycle(cycle: Cycle, exercises: Mapping[str, Exercise]) -> CycleValidation:
    """
    Check a cycle configuration.

    Errors: missing name, week or day counts out of range, no groups,
    empty rotations, rotation entries without a group, date scheduling
    without matching selected days.

    Warnings: empty groups, unknown or repeated exercises in a group,
    simple-mode exercises without a base value, weekly goals for types
    nobody trains.

    Args:
        cycle: Cycle to check
        exercises: Exercise lookup by id

    Returns:
        CycleValidation
    """
    result = CycleValidation()
    errors, warnings = result.errors, result.warnings

    if not cycle.name.strip():
        errors.append("Cycle name is required")
    if not MIN_CYCLE_WEEKS <= cycle.number_of_weeks <= MAX_CYCLE_WEEKS:
        errors.append(f"Cycle must be {MIN_CYCLE_WEEKS}-{MAX_CYCLE_WEEKS} weeks")
    if not MIN_DAYS_PER_WEEK <= cycle.workout_days_per_week <= MAX_DAYS_PER_WEEK:
        errors.append(
            f"Workout days per week must be between {MIN_DAYS_PER_WEEK} and {MAX_DAYS_PER_WEEK}"
        )
    if not cycle.groups:
        errors.append("At least one group is required")
    if not cycle.group_rotation:
        errors.append("Group rotation is required")
    if not cycle.rfem_rotation:
        errors.append("RFEM rotation is required")

    group_ids = {g.id for g in cycle.groups}
    for group_id in cycle.group_rotation:
        if group_id not in group_ids:
            errors.append(f"Group {group_id} in rotation not found")

    if cycle.scheduling_mode == "date":
        if not cycle.selected_days:
            errors.append("Date scheduling needs at least one selected day")
        elif len(set(cycle.selected_days)) != cycle.workout_days_per_week:
            errors.append(
                f"{len(set(cycle.selected_days))} selected days but "
                f"{cycle.workout_days_per_week} workout days per week"
            )

    trained_types: set[str] = set()
    for group in cycle.groups:
        if not group.exercise_assignments:
            warnings.append(f'Group "{group.name}" has no exercises')

        seen: set[str] = set()
        for assignment in group.exercise_assignments:
            exercise = exercises.get(assignment.exercise_id)
            if exercise is None:
                warnings.append(
                    f'Unknown exercise {assignment.exercise_id} in group "{group.name}" will be skipped'
                )
                continue
            if exercise.id in seen:
                warnings.append(f'"{exercise.name}" appears twice in group "{group.name}"')
            seen.add(exercise.id)
            trained_types.add(exercise.type)

            if exercise.is_conditioning:
                continue
            if resolve_exercise_mode(cycle.progression_mode, assignment) != "simple":
                continue
            if exercise.is_time_based:
                if assignment.simple_time is None or assignment.simple_time.base is None:
                    warnings.append(f'"{exercise.name}" in group "{group.name}" has no base time set')
            elif assignment.simple_reps is None or assignment.simple_reps.base is None:
                warnings.append(f'"{exercise.name}" in group "{group.name}" has no base reps set')

    for exercise_type, goal in (cycle.weekly_set_goals or {}).items():
        if goal > 0 and exercise_type not in trained_types:
            warnings.append(f"Weekly goal of {goal} {exercise_type} sets but no {exercise_type} exercises")

    return result


def ensure_cycle_mutable(
    current: Cycle,
    updated: Cycle,
    workouts: list[ScheduledWorkout],
) -> None:
    """
    Reject group or rotation edits to a cycle that already has workouts.

    Raises:
        ConfigurationError: If the edit would desynchronize scheduled workouts
    """
    if not any(w.cycle_id == current.id for w in workouts):
        return
    if (
        current.groups != updated.groups
        or current.group_rotation != updated.group_rotation
        or current.rfem_rotation != updated.rfem_rotation
    ):
        raise ConfigurationError(
            f"Cycle {current.name!r} already has scheduled workouts; "
            "its groups and rotations can no longer change"
        )
