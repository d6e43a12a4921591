"""
Formula-focused unit tests for the cycle scheduling engine.

Each test verifies one formula of the progression, warm-up, conditioning
or rotation code.  Values are hand-computed so the tests double as worked
examples.
"""

from datetime import date, datetime, timedelta

import pytest

from cycle_scheduler.core.config import (
    CONDITIONING_DEFAULT_BASE_REPS,
    CONDITIONING_DEFAULT_BASE_SECONDS,
    RFEM_MIN_TARGET_REPS,
    RFEM_MIN_TARGET_SECONDS,
    SIMPLE_DEFAULT_BASE_REPS,
    SIMPLE_DEFAULT_BASE_SECONDS,
    WARMUP_MIN_REPS,
    WARMUP_MIN_SECONDS,
)
from cycle_scheduler.core.engine.conditioning import (
    conditioning_set_target,
    conditioning_target,
    resolve_baseline,
    resolve_increment,
)
from cycle_scheduler.core.engine.progression import (
    compute_set_target,
    compute_set_weight,
    progression_count,
    resolve_exercise_mode,
    rfem_target,
    simple_target,
)
from cycle_scheduler.core.engine.rotation import build_skeleton, calculate_workout_dates
from cycle_scheduler.core.engine.warmup import (
    make_warmup_set,
    round_half_up,
    warmup_target,
    warmups_enabled,
)
from cycle_scheduler.core.errors import ConfigurationError
from cycle_scheduler.core.metrics import cycle_progress, latest_max_records, next_pending_workout
from cycle_scheduler.core.models import (
    MAX_ATTEMPT,
    UNESTABLISHED,
    ConditioningDetail,
    Cycle,
    Exercise,
    ExerciseAssignment,
    MaxRecord,
    MaxTestDetail,
    RfemDetail,
    Rotation,
    ScheduledSet,
    ScheduledWorkout,
    SimpleDetail,
    SimpleProgression,
    WarmupDetail,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

T0 = datetime(2026, 10, 1, 9, 0)


def _exercise(ex_id: str = "pull_up", ex_type: str = "pull", **kwargs) -> Exercise:
    return Exercise(id=ex_id, name=ex_id.replace("_", " ").title(), type=ex_type, **kwargs)


def _record(ex_id: str = "pull_up", reps: int | None = None, seconds: int | None = None,
            days: int = 0, weight: float | None = None) -> MaxRecord:
    return MaxRecord(
        exercise_id=ex_id,
        recorded_at=T0 + timedelta(days=days),
        max_reps=reps,
        max_time=seconds,
        weight=weight,
    )


def _cycle(**kwargs) -> Cycle:
    defaults = dict(
        id="c1",
        name="Test cycle",
        start_date=date(2026, 10, 19),
        number_of_weeks=4,
        workout_days_per_week=3,
        group_rotation=["a"],
        rfem_rotation=[3],
    )
    defaults.update(kwargs)
    return Cycle(**defaults)


def _set(detail, measurement: str = "reps", ex_id: str = "pull_up") -> ScheduledSet:
    return ScheduledSet(
        exercise_id=ex_id,
        exercise_type="pull",
        measurement_type=measurement,
        set_number=1,
        detail=detail,
    )


def _workout(seq: int, status: str = "pending", ad_hoc: bool = False) -> ScheduledWorkout:
    return ScheduledWorkout(
        cycle_id="c1",
        sequence_number=seq,
        week_number=1,
        day_in_week=1,
        group_id="a",
        rfem=3,
        status=status,
        is_ad_hoc=ad_hoc,
    )


# ===========================================================================
# warmup.py: round_half_up
# ===========================================================================

class TestRoundHalfUp:
    """Halves round up, everything else to the nearest integer."""

    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1  # builtin round(0.5) is 0

    def test_below_half_rounds_down(self):
        assert round_half_up(2.49) == 2

    def test_integer_unchanged(self):
        assert round_half_up(7.0) == 7


# ===========================================================================
# progression.py: RFEM
# ===========================================================================

class TestRfemTarget:
    """reps: max(1, max − rfem); time: max(5, round(max × (1 − 0.1 × rfem)))"""

    def test_reps_subtracts_rfem(self):
        assert rfem_target(15, 4) == 11

    def test_reps_clamped_to_one(self):
        # 3 − 5 = −2 → 1
        assert rfem_target(3, 5) == RFEM_MIN_TARGET_REPS == 1

    def test_rfem_zero_is_the_max(self):
        assert rfem_target(12, 0) == 12

    def test_time_removes_ten_percent_per_point(self):
        # 60 × (1 − 0.3) = 42
        assert rfem_target(60, 3, "time") == 42

    def test_time_rounds_half_up(self):
        # 45 × 0.9 = 40.5 → 41
        assert rfem_target(45, 1, "time") == 41

    def test_time_clamped_to_five_seconds(self):
        # 20 × (1 − 0.9) = 2 → 5
        assert rfem_target(20, 9, "time") == RFEM_MIN_TARGET_SECONDS == 5


# ===========================================================================
# progression.py: mode resolution
# ===========================================================================

class TestResolveExerciseMode:
    """Assignment mode (mixed only) → cycle mode → rfem."""

    def test_mixed_uses_assignment_mode(self):
        a = ExerciseAssignment(exercise_id="x", progression_mode="simple")
        assert resolve_exercise_mode("mixed", a) == "simple"

    def test_mixed_without_assignment_mode_is_rfem(self):
        assert resolve_exercise_mode("mixed", ExerciseAssignment(exercise_id="x")) == "rfem"
        assert resolve_exercise_mode("mixed") == "rfem"

    def test_non_mixed_cycle_ignores_assignment(self):
        a = ExerciseAssignment(exercise_id="x", progression_mode="rfem")
        assert resolve_exercise_mode("simple", a) == "simple"
        a = ExerciseAssignment(exercise_id="x", progression_mode="simple")
        assert resolve_exercise_mode("rfem", a) == "rfem"


# ===========================================================================
# progression.py: simple progression
# ===========================================================================

class TestProgressionCount:
    """constant → 0; per_week → week − 1; per_workout → prior occurrences"""

    def test_constant(self):
        assert progression_count("constant", 4, 9) == 0

    def test_per_week(self):
        assert progression_count("per_week", 3, 9) == 2

    def test_per_workout(self):
        assert progression_count("per_workout", 3, 4) == 4


class TestSimpleTarget:
    """target = base + increment × count, with 10 reps / 30 s for a missing base"""

    def test_per_week_week_one_is_base(self):
        detail = SimpleDetail(SimpleProgression(10, "per_week", 2), week_number=1, occurrence_index=0)
        assert simple_target(detail, "reps") == 10

    def test_per_week_week_three(self):
        # 10 + 2 × (3 − 1) = 14
        detail = SimpleDetail(SimpleProgression(10, "per_week", 2), week_number=3, occurrence_index=5)
        assert simple_target(detail, "reps") == 14

    def test_per_workout_uses_occurrences(self):
        # 30 + 5 × 2 = 40
        detail = SimpleDetail(SimpleProgression(30, "per_workout", 5), week_number=1, occurrence_index=2)
        assert simple_target(detail, "time") == 40

    def test_fractional_increment_rounds(self):
        # 10 + 1.5 × 1 = 11.5 → 12
        detail = SimpleDetail(SimpleProgression(10, "per_week", 1.5), week_number=2, occurrence_index=0)
        assert simple_target(detail, "reps") == 12

    def test_missing_base_falls_back(self):
        detail = SimpleDetail(SimpleProgression(), week_number=2, occurrence_index=1)
        assert simple_target(detail, "reps") == SIMPLE_DEFAULT_BASE_REPS
        assert simple_target(detail, "time") == SIMPLE_DEFAULT_BASE_SECONDS


# ===========================================================================
# conditioning.py
# ===========================================================================

class TestConditioning:
    """target = baseline + weekly_increment × (week − 1)"""

    def test_week_one_is_baseline(self):
        assert conditioning_target(10, 2, 1) == 10

    def test_week_three(self):
        # 10 + 2 × 2 = 14
        assert conditioning_target(10, 2, 3) == 14

    def test_baseline_fallback_chain(self):
        ex = _exercise("plank", "core", mode="conditioning", measurement_type="time")
        assert resolve_baseline("time", None, ex) == CONDITIONING_DEFAULT_BASE_SECONDS
        ex.default_conditioning_time = 45
        assert resolve_baseline("time", None, ex) == 45
        assert resolve_baseline("time", 60, ex) == 60

    def test_reps_baseline_default(self):
        ex = _exercise("squat", "legs", mode="conditioning")
        assert resolve_baseline("reps", None, ex) == CONDITIONING_DEFAULT_BASE_REPS

    def test_increment_falls_back_to_cycle(self):
        cycle = _cycle(conditioning_weekly_rep_increment=3, conditioning_weekly_time_increment=10)
        assert resolve_increment("reps", None, cycle) == 3
        assert resolve_increment("time", None, cycle) == 10
        assert resolve_increment("reps", 1, cycle) == 1

    def test_set_target_resolves_live(self):
        # exercise default 20, cycle increment 2, week 4 → 20 + 2 × 3 = 26
        ex = _exercise("squat", "legs", mode="conditioning", default_conditioning_reps=20)
        detail = ConditioningDetail(week_number=4)
        assert conditioning_set_target(detail, "reps", _cycle(), ex) == 26


# ===========================================================================
# warmup.py
# ===========================================================================

class TestWarmupTarget:
    """target = max(min, round(previous_max × pct / 100))"""

    def test_twenty_percent_of_twenty(self):
        assert warmup_target(20, 20, "reps") == 4

    def test_small_max_clamped_to_one_rep(self):
        # 2 × 0.2 = 0.4 → 0 → 1
        assert warmup_target(2, 20, "reps") == WARMUP_MIN_REPS == 1

    def test_rounds_half_up(self):
        # 10 × 0.25 = 2.5 → 3
        assert warmup_target(10, 25, "reps") == 3

    def test_time_minimum_is_five_seconds(self):
        # 10 × 0.2 = 2 → 5
        assert warmup_target(10, 20, "time") == WARMUP_MIN_SECONDS == 5
        assert warmup_target(60, 20, "time") == 12


class TestWarmupSet:
    """Warm-up sets need a previous max and a standard exercise."""

    def test_no_max_no_warmup(self):
        assert make_warmup_set(_exercise(), None, 1) is None

    def test_max_of_zero_no_warmup(self):
        assert make_warmup_set(_exercise(), _record(reps=0), 1) is None

    def test_snapshot_uses_matching_measurement(self):
        ex = _exercise("hang", measurement_type="time")
        s = make_warmup_set(ex, _record("hang", seconds=50), 1)
        assert s is not None
        assert s.detail == WarmupDetail(percentage=20, previous_max=50)
        assert s.is_warmup

    def test_conditioning_never_warms_up(self):
        ex = _exercise("squat", "legs", mode="conditioning")
        assert not warmups_enabled(_cycle(), ex)

    def test_timed_toggle(self):
        ex = _exercise("hang", measurement_type="time")
        assert not warmups_enabled(_cycle(include_timed_warmups=False), ex)
        assert warmups_enabled(_cycle(include_timed_warmups=False), _exercise())

    def test_assignment_override_wins_both_ways(self):
        ex = _exercise()
        on = ExerciseAssignment(exercise_id=ex.id, include_warmup=True)
        off = ExerciseAssignment(exercise_id=ex.id, include_warmup=False)
        assert warmups_enabled(_cycle(include_warmup_sets=False), ex, on)
        assert not warmups_enabled(_cycle(include_warmup_sets=True), ex, off)


# ===========================================================================
# progression.py: compute_set_target / compute_set_weight
# ===========================================================================

class TestComputeSetTarget:
    """Live targets from the set detail and the latest max."""

    def test_rfem_from_current_max(self):
        s = _set(RfemDetail(rfem_value=4))
        assert compute_set_target(s, _cycle(), _exercise(), _record(reps=15)) == 11

    def test_rfem_without_max_is_unestablished(self):
        s = _set(RfemDetail(rfem_value=4))
        target = compute_set_target(s, _cycle(), _exercise(), None)
        assert target is UNESTABLISHED
        assert target != 0

    def test_rfem_time_needs_time_max(self):
        # Record has reps only; a timed set cannot derive a target from it.
        s = _set(RfemDetail(rfem_value=2), measurement="time")
        ex = _exercise(measurement_type="time")
        assert compute_set_target(s, _cycle(), ex, _record(reps=10)) is UNESTABLISHED

    def test_zero_max_is_unestablished(self):
        # A recorded 0 gives neither a warm-up nor a working target.
        s = _set(RfemDetail(rfem_value=1))
        record = _record(reps=0)
        assert compute_set_target(s, _cycle(), _exercise(), record) is UNESTABLISHED
        assert make_warmup_set(_exercise(), record, 1) is None

    def test_max_test_is_open(self):
        s = _set(MaxTestDetail(previous_max=12))
        assert compute_set_target(s, _cycle(), _exercise(), _record(reps=12)) is MAX_ATTEMPT

    def test_warmup_uses_snapshot_not_current_max(self):
        s = _set(WarmupDetail(percentage=20, previous_max=20))
        assert compute_set_target(s, _cycle(), _exercise(), _record(reps=50)) == 4

    def test_unknown_detail_raises(self):
        s = _set(RfemDetail(rfem_value=1))
        s.detail = object()
        with pytest.raises(TypeError):
            compute_set_target(s, _cycle(), _exercise(), None)


class TestComputeSetWeight:
    """Simple: own weight progression; RFEM: max weight, else default weight."""

    def test_simple_weight_progression(self):
        # 5 + 2.5 × (3 − 1) = 10
        detail = SimpleDetail(
            SimpleProgression(8), week_number=3, occurrence_index=0,
            weight=SimpleProgression(5, "per_week", 2.5),
        )
        assert compute_set_weight(_set(detail), _exercise()) == pytest.approx(10.0)

    def test_simple_without_weight_is_bodyweight(self):
        detail = SimpleDetail(SimpleProgression(8), week_number=1, occurrence_index=0)
        assert compute_set_weight(_set(detail), _exercise()) is None

    def test_rfem_weight_from_latest_max(self):
        ex = _exercise(weight_enabled=True, default_weight=5.0)
        s = _set(RfemDetail(rfem_value=2))
        assert compute_set_weight(s, ex, _record(reps=8, weight=10.0)) == 10.0
        assert compute_set_weight(s, ex, None) == 5.0

    def test_rfem_weight_disabled(self):
        s = _set(RfemDetail(rfem_value=2))
        assert compute_set_weight(s, _exercise(), _record(reps=8, weight=10.0)) is None


# ===========================================================================
# rotation.py
# ===========================================================================

class TestRotation:
    """Workout n uses rotation entry (n − 1) mod len, per rotation."""

    def test_empty_group_rotation_rejected(self):
        with pytest.raises(ConfigurationError):
            Rotation.create([], [3])

    def test_empty_rfem_rotation_rejected(self):
        with pytest.raises(ConfigurationError):
            Rotation.create(["a"], [])

    def test_cycle_property_validates(self):
        with pytest.raises(ConfigurationError):
            _cycle(rfem_rotation=[]).rotation

    def test_rotations_wrap_independently(self):
        slots = build_skeleton(Rotation.create(["a", "b"], [3, 4, 5]), 2, 3)
        assert [s.sequence_number for s in slots] == [1, 2, 3, 4, 5, 6]
        assert [s.group_id for s in slots] == ["a", "b", "a", "b", "a", "b"]
        assert [s.rfem_value for s in slots] == [3, 4, 5, 3, 4, 5]
        assert [s.week_number for s in slots] == [1, 1, 1, 2, 2, 2]
        assert [s.day_in_week for s in slots] == [1, 2, 3, 1, 2, 3]


class TestWorkoutDates:
    """Monday-anchored weeks; first-week days before the start are dropped."""

    def test_start_midweek(self):
        # 2026-10-21 is a Wednesday; Monday the 19th is skipped.
        dates = calculate_workout_dates(date(2026, 10, 21), 2, [4, 0, 2])
        assert dates == [
            date(2026, 10, 21),
            date(2026, 10, 23),
            date(2026, 10, 26),
            date(2026, 10, 28),
            date(2026, 10, 30),
        ]

    def test_start_on_monday(self):
        dates = calculate_workout_dates(date(2026, 10, 19), 1, [0])
        assert dates == [date(2026, 10, 19)]

    def test_no_selected_days(self):
        assert calculate_workout_dates(date(2026, 10, 19), 4, []) == []


# ===========================================================================
# metrics.py
# ===========================================================================

class TestMetrics:
    """Latest max per exercise and progress through a cycle."""

    def test_latest_max_records(self):
        records = [
            _record("pull_up", reps=10, days=0),
            _record("dip", reps=15, days=1),
            _record("pull_up", reps=12, days=7),
        ]
        latest = latest_max_records(records)
        assert latest["pull_up"].max_reps == 12
        assert latest["dip"].max_reps == 15

    def test_cycle_progress_ignores_ad_hoc(self):
        workouts = [
            _workout(1, "completed"),
            _workout(2, "skipped"),
            _workout(3),
            _workout(4, "completed", ad_hoc=True),
        ]
        progress = cycle_progress(workouts)
        assert (progress.completed, progress.skipped, progress.total) == (1, 1, 3)
        assert progress.passed == 2
        assert progress.fraction == pytest.approx(2 / 3)

    def test_next_pending_workout(self):
        workouts = [_workout(3), _workout(1, "completed"), _workout(2, "partial")]
        assert next_pending_workout(workouts).sequence_number == 2
        assert next_pending_workout([_workout(1, "completed")]) is None
