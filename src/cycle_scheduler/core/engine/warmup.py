"""
Warm-up set generation.

A warm-up precedes the first working set of a standard exercise and is
sized as a percentage of the athlete's most recent max.  Without a max
no warm-up is emitted: guessing would hide that the value is unknown.
"""

import math
from typing import Callable

from ..config import WARMUP_MIN_REPS, WARMUP_MIN_SECONDS, WARMUP_PERCENTAGE
from ..models import (
    Cycle,
    Exercise,
    ExerciseAssignment,
    MaxRecord,
    MeasurementType,
    ScheduledSet,
    WarmupDetail,
    new_id,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (for positive values)."""
    return int(math.floor(value + 0.5))


def warmup_target(previous_max: float, percentage: int, measurement_type: MeasurementType) -> int:
    """
    Warm-up reps or seconds.

        target = max(minimum, round(previous_max × percentage / 100))

    Examples:
        previous max 20 reps at 20% → 4 reps
        previous max 2 reps at 20%  → 1 rep (minimum)
    """
    minimum = WARMUP_MIN_SECONDS if measurement_type == "time" else WARMUP_MIN_REPS
    return max(minimum, round_half_up(previous_max * percentage / 100))


def warmups_enabled(
    cycle: Cycle,
    exercise: Exercise,
    assignment: ExerciseAssignment | None = None,
) -> bool:
    """
    Whether working sets of this exercise get a warm-up in this cycle.

    Conditioning exercises never do.  An explicit per-assignment setting
    wins over both cycle toggles; otherwise include_warmup_sets applies,
    plus include_timed_warmups for time-based exercises.
    """
    if exercise.is_conditioning:
        return False
    if assignment is not None and assignment.include_warmup is not None:
        return assignment.include_warmup
    if not cycle.include_warmup_sets:
        return False
    if exercise.is_time_based and not cycle.include_timed_warmups:
        return False
    return True


def make_warmup_set(
    exercise: Exercise,
    previous_max: MaxRecord | float | None,
    set_number: int,
    percentage: int = WARMUP_PERCENTAGE,
    id_factory: Callable[[], str] = new_id,
) -> ScheduledSet | None:
    """
    Build the warm-up set for an exercise, or None without a non-zero max.

    Args:
        exercise: Exercise being warmed up
        previous_max: Latest MaxRecord, or an already-extracted value
        set_number: Position of the warm-up within the workout
        percentage: Share of the previous max
        id_factory: Identifier source

    Returns:
        ScheduledSet with a WarmupDetail snapshot, or None
    """
    if isinstance(previous_max, MaxRecord):
        value = previous_max.value_for(exercise.measurement_type)
    else:
        value = previous_max
    if not value:
        return None

    return ScheduledSet(
        exercise_id=exercise.id,
        exercise_type=exercise.type,
        measurement_type=exercise.measurement_type,
        set_number=set_number,
        detail=WarmupDetail(percentage=percentage, previous_max=value),
        id=id_factory(),
    )
