"""
Progression calculation.

Computes the numeric target of one set.  Working sets of standard
exercises follow either RFEM (current max minus the day's RFEM value) or
simple linear progression; the mode is resolved once per exercise when
the schedule is built and travels with the set as its detail variant.

Targets are always recomputed from the athlete's current max at display
time.  Only warm-up and max-test sets carry a frozen previous-max snapshot.
"""

from ..config import (
    RFEM_MIN_TARGET_REPS,
    RFEM_MIN_TARGET_SECONDS,
    RFEM_TIME_PERCENTAGE,
    SIMPLE_DEFAULT_BASE_REPS,
    SIMPLE_DEFAULT_BASE_SECONDS,
)
from ..models import (
    MAX_ATTEMPT,
    UNESTABLISHED,
    ConditioningDetail,
    Cycle,
    Exercise,
    ExerciseAssignment,
    ExerciseProgressionMode,
    MaxRecord,
    MaxTestDetail,
    MeasurementType,
    OpenTarget,
    ProgressionInterval,
    ProgressionMode,
    RfemDetail,
    ScheduledSet,
    SimpleDetail,
    SimpleProgression,
    WarmupDetail,
)
from .conditioning import conditioning_set_target
from .warmup import round_half_up, warmup_target


def resolve_exercise_mode(
    cycle_mode: ProgressionMode,
    assignment: ExerciseAssignment | None = None,
) -> ExerciseProgressionMode:
    """
    Effective progression mode of one exercise.

    Resolution order: the assignment's own mode (mixed cycles only), then
    the cycle mode, then RFEM.  Never falls back to simple on its own.
    """
    if cycle_mode == "mixed":
        if assignment is not None and assignment.progression_mode is not None:
            return assignment.progression_mode
        return "rfem"
    if cycle_mode == "simple":
        return "simple"
    return "rfem"


def rfem_target(
    current_max: float,
    rfem_value: int,
    measurement_type: MeasurementType = "reps",
) -> int:
    """
    RFEM working-set target.

    Reps:  max − rfem, clamped to at least 1.
    Time:  each RFEM point removes 10% of the max time, clamped to 5 s.

    Examples:
        max 15, RFEM 4 → 11
        max 3,  RFEM 5 → 1
        max 60 s, RFEM 3 → 42 s
    """
    if measurement_type == "time":
        scaled = current_max * (1 - RFEM_TIME_PERCENTAGE * rfem_value)
        return max(RFEM_MIN_TARGET_SECONDS, round_half_up(scaled))
    return max(RFEM_MIN_TARGET_REPS, int(current_max) - rfem_value)


def progression_count(
    interval: ProgressionInterval,
    week_number: int,
    occurrence_index: int,
) -> int:
    """
    Number of increments applied so far.

    constant    → 0
    per_workout → prior occurrences of the exercise in the cycle
    per_week    → week_number − 1
    """
    if interval == "per_workout":
        return occurrence_index
    if interval == "per_week":
        return week_number - 1
    return 0


def simple_value(
    progression: SimpleProgression,
    week_number: int,
    occurrence_index: int,
    default_base: float = 0.0,
) -> float:
    """base + increment × progression_count, with default_base for an unset base."""
    base = progression.base if progression.base is not None else default_base
    count = progression_count(progression.interval, week_number, occurrence_index)
    return base + progression.increment * count


def simple_target(detail: SimpleDetail, measurement_type: MeasurementType) -> int:
    """Reps or seconds for a simple-progression working set."""
    default = SIMPLE_DEFAULT_BASE_SECONDS if measurement_type == "time" else SIMPLE_DEFAULT_BASE_REPS
    value = simple_value(detail.value, detail.week_number, detail.occurrence_index, default)
    return max(0, round_half_up(value))


def compute_set_target(
    scheduled_set: ScheduledSet,
    cycle: Cycle,
    exercise: Exercise,
    current_max: MaxRecord | None,
) -> int | OpenTarget:
    """
    Live target reps or seconds for a scheduled set.

    Args:
        scheduled_set: Set to evaluate
        cycle: Cycle the set belongs to (conditioning increment fallback)
        exercise: Current exercise definition (conditioning baseline fallback)
        current_max: Latest MaxRecord for the exercise, if any

    Returns:
        A number, UNESTABLISHED for RFEM sets without a non-zero max, or
        MAX_ATTEMPT for max-test sets
    """
    detail = scheduled_set.detail
    measurement = scheduled_set.measurement_type

    if isinstance(detail, WarmupDetail):
        return warmup_target(detail.previous_max, detail.percentage, measurement)

    if isinstance(detail, MaxTestDetail):
        return MAX_ATTEMPT

    if isinstance(detail, ConditioningDetail):
        return conditioning_set_target(detail, measurement, cycle, exercise)

    if isinstance(detail, SimpleDetail):
        return simple_target(detail, measurement)

    if isinstance(detail, RfemDetail):
        value = current_max.value_for(measurement) if current_max is not None else None
        if not value:
            return UNESTABLISHED
        return rfem_target(value, detail.rfem_value, measurement)

    raise TypeError(f"Unknown set detail: {type(detail).__name__}")


def compute_set_weight(
    scheduled_set: ScheduledSet,
    exercise: Exercise,
    current_max: MaxRecord | None = None,
) -> float | None:
    """
    Target added weight for a working set, or None for bodyweight.

    Simple sets progress their own weight dimension; RFEM sets reuse the
    weight of the latest max, else the exercise's default weight.
    """
    detail = scheduled_set.detail
    if isinstance(detail, SimpleDetail):
        if detail.weight is None or detail.weight.base is None:
            return None
        return simple_value(detail.weight, detail.week_number, detail.occurrence_index)
    if isinstance(detail, RfemDetail) and exercise.weight_enabled:
        if current_max is not None and current_max.weight is not None:
            return current_max.weight
        return exercise.default_weight
    return None
