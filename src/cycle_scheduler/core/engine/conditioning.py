"""
Conditioning progression.

Conditioning exercises never reference a max: their target is a baseline
that grows by a flat amount every week of the cycle.
"""

from ..config import CONDITIONING_DEFAULT_BASE_REPS, CONDITIONING_DEFAULT_BASE_SECONDS
from ..models import ConditioningDetail, Cycle, Exercise, ExerciseAssignment, MeasurementType


def conditioning_target(baseline: int, weekly_increment: int, week_number: int) -> int:
    """
    Weekly-incrementing conditioning target.

        target = baseline + weekly_increment × (week_number − 1)

    Args:
        baseline: Week-1 reps or seconds
        weekly_increment: Reps or seconds added per week
        week_number: 1-indexed week of the cycle

    Returns:
        Target reps or seconds
    """
    return baseline + weekly_increment * (week_number - 1)


def resolve_baseline(
    measurement_type: MeasurementType,
    override: int | None,
    exercise: Exercise,
) -> int:
    """Assignment baseline, else the exercise's stored default, else the global default."""
    if override is not None:
        return override
    if measurement_type == "time":
        if exercise.default_conditioning_time is not None:
            return exercise.default_conditioning_time
        return CONDITIONING_DEFAULT_BASE_SECONDS
    if exercise.default_conditioning_reps is not None:
        return exercise.default_conditioning_reps
    return CONDITIONING_DEFAULT_BASE_REPS


def resolve_increment(
    measurement_type: MeasurementType,
    override: int | None,
    cycle: Cycle,
) -> int:
    """Per-exercise weekly increment if present, else the cycle-level fallback."""
    if override is not None:
        return override
    if measurement_type == "time":
        return cycle.conditioning_weekly_time_increment
    return cycle.conditioning_weekly_rep_increment


def conditioning_detail(
    assignment: ExerciseAssignment,
    exercise: Exercise,
    week_number: int,
) -> ConditioningDetail:
    """Capture the assignment's overrides for one scheduled week."""
    if exercise.is_time_based:
        base, increment = assignment.conditioning_base_time, assignment.conditioning_time_increment
    else:
        base, increment = assignment.conditioning_base_reps, assignment.conditioning_rep_increment
    return ConditioningDetail(
        week_number=week_number,
        base_override=base,
        increment_override=increment,
    )


def conditioning_set_target(
    detail: ConditioningDetail,
    measurement_type: MeasurementType,
    cycle: Cycle,
    exercise: Exercise,
) -> int:
    """Live target for a conditioning set, resolving fallbacks against current data."""
    baseline = resolve_baseline(measurement_type, detail.base_override, exercise)
    increment = resolve_increment(measurement_type, detail.increment_override, cycle)
    return conditioning_target(baseline, increment, detail.week_number)
