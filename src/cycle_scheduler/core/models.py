"""
Data models for cycle-scheduler.

All core dataclasses representing exercises, max records, cycles and the
scheduled workouts generated from them.  The engine receives these by
read-only reference and returns newly constructed ScheduledWorkout values.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Literal, Union

from .config import EXERCISE_TYPES
from .errors import ConfigurationError

ExerciseType = Literal["push", "pull", "legs", "core", "balance", "mobility", "other"]
ExerciseMode = Literal["standard", "conditioning"]
MeasurementType = Literal["reps", "time"]
CycleType = Literal["training", "max_testing"]
ProgressionMode = Literal["rfem", "simple", "mixed"]
ExerciseProgressionMode = Literal["rfem", "simple"]
ProgressionInterval = Literal["constant", "per_workout", "per_week"]
SchedulingMode = Literal["sequence", "date"]
CycleStatus = Literal["planning", "active", "completed"]
WorkoutStatus = Literal["pending", "completed", "partial", "skipped"]

PROGRESSION_INTERVALS = ("constant", "per_workout", "per_week")
WORKOUT_STATUSES = ("pending", "completed", "partial", "skipped")


def new_id() -> str:
    """Return a fresh random identifier."""
    return uuid.uuid4().hex


class OpenTarget(str, Enum):
    """
    A set target that is deliberately not a number.

    UNESTABLISHED: the athlete has no max yet, so nothing can be derived.
    MAX_ATTEMPT:   a max-test set; the athlete fills in the result.
    """

    UNESTABLISHED = "unestablished"
    MAX_ATTEMPT = "max_attempt"


UNESTABLISHED = OpenTarget.UNESTABLISHED
MAX_ATTEMPT = OpenTarget.MAX_ATTEMPT


@dataclass
class Exercise:
    """
    An exercise definition created by the user.

    Conditioning exercises progress by a flat weekly increment and never
    reference a max; standard exercises are driven by MaxRecords.
    """

    id: str
    name: str
    type: ExerciseType
    mode: ExerciseMode = "standard"
    measurement_type: MeasurementType = "reps"
    notes: str = ""
    default_conditioning_reps: int | None = None
    default_conditioning_time: int | None = None  # seconds
    weight_enabled: bool = False
    default_weight: float | None = None

    def __post_init__(self) -> None:
        """Validate exercise data."""
        if not self.name.strip():
            raise ValueError("Exercise name must not be empty")
        if self.type not in EXERCISE_TYPES:
            raise ValueError(f"Invalid exercise type: {self.type}")
        if self.mode not in ("standard", "conditioning"):
            raise ValueError(f"Invalid exercise mode: {self.mode}")
        if self.measurement_type not in ("reps", "time"):
            raise ValueError(f"Invalid measurement_type: {self.measurement_type}")
        for name in ("default_conditioning_reps", "default_conditioning_time", "default_weight"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative")

    @property
    def is_conditioning(self) -> bool:
        return self.mode == "conditioning"

    @property
    def is_time_based(self) -> bool:
        return self.measurement_type == "time"


@dataclass
class MaxRecord:
    """
    A recorded best performance for one exercise.

    Several records per exercise form a history; the engine always uses
    the most recent one.
    """

    exercise_id: str
    recorded_at: datetime
    max_reps: int | None = None
    max_time: int | None = None  # seconds
    weight: float | None = None  # None = bodyweight
    notes: str = ""
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        """Validate max record data."""
        if self.max_reps is None and self.max_time is None:
            raise ValueError("MaxRecord needs max_reps or max_time")
        if self.max_reps is not None and self.max_reps < 0:
            raise ValueError("max_reps must be non-negative")
        if self.max_time is not None and self.max_time < 0:
            raise ValueError("max_time must be non-negative")
        if self.weight is not None and self.weight < 0:
            raise ValueError("weight must be non-negative")

    def value_for(self, measurement_type: MeasurementType) -> int | None:
        """Return the recorded reps or seconds matching the measurement type."""
        return self.max_time if measurement_type == "time" else self.max_reps


@dataclass(frozen=True)
class SimpleProgression:
    """Linear progression for one dimension (reps, time or weight)."""

    base: float | None = None
    interval: ProgressionInterval = "constant"
    increment: float = 0.0

    def __post_init__(self) -> None:
        if self.interval not in PROGRESSION_INTERVALS:
            raise ValueError(f"Invalid progression interval: {self.interval}")
        if self.base is not None and self.base < 0:
            raise ValueError("Simple progression base must be non-negative")


@dataclass
class ExerciseAssignment:
    """
    An exercise placed in a group, with cycle-scoped overrides.

    progression_mode only matters when the cycle runs in mixed mode.
    include_warmup, when set, overrides the cycle-level warm-up toggles.
    """

    exercise_id: str
    progression_mode: ExerciseProgressionMode | None = None
    include_warmup: bool | None = None

    conditioning_base_reps: int | None = None
    conditioning_base_time: int | None = None
    conditioning_rep_increment: int | None = None
    conditioning_time_increment: int | None = None

    simple_reps: SimpleProgression | None = None
    simple_time: SimpleProgression | None = None
    simple_weight: SimpleProgression | None = None

    def __post_init__(self) -> None:
        if self.progression_mode not in (None, "rfem", "simple"):
            raise ValueError(f"Invalid per-exercise progression mode: {self.progression_mode}")


@dataclass
class Group:
    """A named bundle of exercises scheduled together on a rotation day."""

    id: str
    name: str
    exercise_assignments: list[ExerciseAssignment] = field(default_factory=list)

    def exercise_ids(self) -> list[str]:
        return [a.exercise_id for a in self.exercise_assignments]


@dataclass(frozen=True)
class Rotation:
    """
    Group and RFEM rotations of a cycle, both guaranteed non-empty.

    Use Rotation.create() so the invariant is checked at construction.
    """

    group_ids: tuple[str, ...]
    rfem_values: tuple[int, ...]

    @classmethod
    def create(cls, group_ids: list[str], rfem_values: list[int]) -> "Rotation":
        """
        Build a rotation from the cycle's parallel lists.

        Raises:
            ConfigurationError: If either list is empty
        """
        if not group_ids:
            raise ConfigurationError("Group rotation must contain at least one group")
        if not rfem_values:
            raise ConfigurationError("RFEM rotation must contain at least one value")
        return cls(tuple(group_ids), tuple(int(v) for v in rfem_values))

    def group_at(self, position: int) -> str:
        """Group id for a zero-based schedule position (wraps)."""
        return self.group_ids[position % len(self.group_ids)]

    def rfem_at(self, position: int) -> int:
        """RFEM value for a zero-based schedule position (wraps)."""
        return self.rfem_values[position % len(self.rfem_values)]


@dataclass
class Cycle:
    """
    A multi-week training plan.

    Groups and rotations must not change once workouts have been generated
    from them (see engine.validation.ensure_cycle_mutable).
    """

    id: str
    name: str
    start_date: date
    number_of_weeks: int
    workout_days_per_week: int
    groups: list[Group] = field(default_factory=list)
    group_rotation: list[str] = field(default_factory=list)
    rfem_rotation: list[int] = field(default_factory=list)
    cycle_type: CycleType = "training"
    progression_mode: ProgressionMode = "rfem"
    weekly_set_goals: dict[str, int] | None = None
    conditioning_weekly_rep_increment: int = 2
    conditioning_weekly_time_increment: int = 5
    include_warmup_sets: bool = True
    include_timed_warmups: bool = True
    scheduling_mode: SchedulingMode = "sequence"
    selected_days: list[int] = field(default_factory=list)  # 0 = Monday
    previous_cycle_id: str | None = None
    status: CycleStatus = "planning"
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate enumerated fields."""
        if self.cycle_type not in ("training", "max_testing"):
            raise ValueError(f"Invalid cycle_type: {self.cycle_type}")
        if self.progression_mode not in ("rfem", "simple", "mixed"):
            raise ValueError(f"Invalid progression_mode: {self.progression_mode}")
        if self.scheduling_mode not in ("sequence", "date"):
            raise ValueError(f"Invalid scheduling_mode: {self.scheduling_mode}")
        if self.status not in ("planning", "active", "completed"):
            raise ValueError(f"Invalid cycle status: {self.status}")
        for day in self.selected_days:
            if not 0 <= day <= 6:
                raise ValueError(f"selected_days entries must be 0-6, got {day}")

    @property
    def rotation(self) -> Rotation:
        return Rotation.create(self.group_rotation, self.rfem_rotation)

    @property
    def total_workouts(self) -> int:
        return self.number_of_weeks * self.workout_days_per_week

    def group_by_id(self, group_id: str) -> Group | None:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None


# ---------------------------------------------------------------------------
# Scheduled set detail variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WarmupDetail:
    """Warm-up sized as a percentage of a fixed previous-max snapshot."""

    percentage: int
    previous_max: float


@dataclass(frozen=True)
class RfemDetail:
    """Working set whose target is current max minus the day's RFEM value."""

    rfem_value: int


@dataclass(frozen=True)
class SimpleDetail:
    """Working set with linear progression, copied from the assignment."""

    value: SimpleProgression
    week_number: int
    occurrence_index: int  # prior workouts in the cycle containing this exercise
    weight: SimpleProgression | None = None


@dataclass(frozen=True)
class ConditioningDetail:
    """
    Conditioning working set.

    Overrides left as None are resolved at display time from the exercise
    default (baseline) and the cycle fallback (increment).
    """

    week_number: int
    base_override: int | None = None
    increment_override: int | None = None


@dataclass(frozen=True)
class MaxTestDetail:
    """Max attempt; previous_max is kept for comparison only."""

    previous_max: float | None = None


SetDetail = Union[WarmupDetail, RfemDetail, SimpleDetail, ConditioningDetail, MaxTestDetail]


@dataclass
class ScheduledSet:
    """One set inside a scheduled workout."""

    exercise_id: str
    exercise_type: ExerciseType
    measurement_type: MeasurementType
    set_number: int
    detail: SetDetail
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")

    @property
    def is_warmup(self) -> bool:
        return isinstance(self.detail, WarmupDetail)

    @property
    def is_max_test(self) -> bool:
        return isinstance(self.detail, MaxTestDetail)

    @property
    def is_conditioning(self) -> bool:
        return isinstance(self.detail, ConditioningDetail)

    @property
    def progression_mode(self) -> ExerciseProgressionMode | None:
        """Mode tag of a working set; None for warm-up, conditioning and max-test sets."""
        if isinstance(self.detail, RfemDetail):
            return "rfem"
        if isinstance(self.detail, SimpleDetail):
            return "simple"
        return None


@dataclass
class ScheduledWorkout:
    """
    A workout placed at one position of a cycle.

    sequence_number is 1-indexed over the whole cycle; week_number and
    day_in_week are 1-indexed as well.
    """

    cycle_id: str
    sequence_number: int
    week_number: int
    day_in_week: int
    group_id: str
    rfem: int
    scheduled_sets: list[ScheduledSet] = field(default_factory=list)
    status: WorkoutStatus = "pending"
    completed_at: datetime | None = None
    is_ad_hoc: bool = False
    custom_name: str | None = None
    scheduled_date: date | None = None
    skip_reason: str | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        """Validate workout data."""
        if self.sequence_number < 1:
            raise ValueError("sequence_number must be >= 1")
        if self.week_number < 1 or self.day_in_week < 1:
            raise ValueError("week_number and day_in_week are 1-indexed")
        if self.status not in WORKOUT_STATUSES:
            raise ValueError(f"Invalid workout status: {self.status}")

    @property
    def has_warmup(self) -> bool:
        return any(s.is_warmup for s in self.scheduled_sets)

    @property
    def is_started(self) -> bool:
        return self.status in ("completed", "partial")
