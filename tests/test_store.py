"""
Tests for the file-backed PlannerStore and its serializers.

Each test works in a fresh temporary data directory.
"""

import json
import tempfile
from datetime import date, datetime
from pathlib import Path

import pytest

from cycle_scheduler.core.engine import build_schedule, plan_max_testing
from cycle_scheduler.core.engine.config_loader import load_cycle_defaults
from cycle_scheduler.core.engine.max_testing import MaxTestCandidate
from cycle_scheduler.core.errors import ConfigurationError, ScheduleWarning, ValidationError
from cycle_scheduler.core.models import (
    Cycle,
    Exercise,
    ExerciseAssignment,
    Group,
    MaxRecord,
    SimpleProgression,
)
from cycle_scheduler.io.serializers import dict_to_cycle, dict_to_workout, workout_to_dict
from cycle_scheduler.io.store import PlannerStore


# ===========================================================================
# Helpers
# ===========================================================================

@pytest.fixture
def store():
    """Initialized store in a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        s = PlannerStore(Path(tmpdir) / "data")
        s.init()
        yield s


def _seed(store: PlannerStore) -> None:
    store.save_exercise(Exercise("pull_up", "Pull-Up", "pull"))
    store.save_exercise(Exercise("dip", "Dip", "push", weight_enabled=True, default_weight=5.0))
    store.save_exercise(Exercise("plank", "Plank", "core", mode="conditioning",
                                 measurement_type="time", default_conditioning_time=30))


def _cycle(cycle_id: str = "c1", status: str = "planning") -> Cycle:
    return Cycle(
        id=cycle_id,
        name=f"Cycle {cycle_id}",
        start_date=date(2026, 10, 19),
        number_of_weeks=2,
        workout_days_per_week=2,
        groups=[
            Group("a", "Upper", [
                ExerciseAssignment("pull_up"),
                ExerciseAssignment("dip", progression_mode="simple",
                                   simple_reps=SimpleProgression(8, "per_week", 1),
                                   simple_weight=SimpleProgression(5, "per_workout", 1.25)),
            ]),
            Group("b", "Core", [ExerciseAssignment("plank", conditioning_base_time=40)]),
        ],
        group_rotation=["a", "b"],
        rfem_rotation=[3, 4],
        progression_mode="mixed",
        status=status,
        created_at=datetime(2026, 10, 1, 12, 0),
        updated_at=datetime(2026, 10, 1, 12, 0),
    )


# ===========================================================================
# Initialization
# ===========================================================================

class TestInit:
    def test_init_creates_files(self, store):
        for path in (store.exercises_path, store.max_records_path,
                     store.cycles_path, store.workouts_path):
            assert path.exists()
        assert store.exists()

    def test_uninitialized_store_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            s = PlannerStore(Path(tmpdir) / "missing")
            with pytest.raises(FileNotFoundError):
                s.load_exercises()

    def test_corrupt_file_raises_validation_error(self, store):
        store.cycles_path.write_text("{not json")
        with pytest.raises(ValidationError):
            store.load_cycles()


# ===========================================================================
# Exercises and max records
# ===========================================================================

class TestExercisesAndMaxes:
    def test_save_and_replace_exercise(self, store):
        _seed(store)
        store.save_exercise(Exercise("pull_up", "Strict Pull-Up", "pull"))
        exercises = store.load_exercises()
        assert list(exercises) == ["pull_up", "dip", "plank"]
        assert exercises["pull_up"].name == "Strict Pull-Up"
        assert exercises["dip"].default_weight == 5.0

    def test_latest_max_records(self, store):
        _seed(store)
        store.append_max_record(MaxRecord("pull_up", datetime(2026, 10, 10), max_reps=12))
        store.append_max_record(MaxRecord("pull_up", datetime(2026, 9, 1), max_reps=9))
        store.append_max_record(MaxRecord("dip", datetime(2026, 10, 2), max_reps=15, weight=10.0))
        latest = store.latest_max_records()
        assert latest["pull_up"].max_reps == 12
        assert latest["dip"].weight == 10.0
        assert len(store.load_max_records()) == 3

    def test_max_record_for_unknown_exercise(self, store):
        with pytest.raises(ValidationError):
            store.append_max_record(MaxRecord("ghost", datetime(2026, 10, 10), max_reps=3))

    def test_bad_max_line_reports_line_number(self, store):
        _seed(store)
        store.append_max_record(MaxRecord("pull_up", datetime(2026, 10, 10), max_reps=12))
        with open(store.max_records_path, "a") as f:
            f.write("garbage\n")
        with pytest.raises(ValidationError, match="line 2"):
            store.load_max_records()


# ===========================================================================
# Cycles and activation
# ===========================================================================

class TestCycles:
    def test_round_trip(self, store):
        cycle = _cycle()
        store.save_cycle(cycle)
        assert store.load_cycles() == [cycle]

    def test_duplicate_id_rejected(self, store):
        store.save_cycle(_cycle())
        with pytest.raises(ValidationError):
            store.save_cycle(_cycle())

    def test_activate_is_exclusive(self, store):
        store.save_cycle(_cycle("c1"))
        store.save_cycle(_cycle("c2"))
        store.activate_cycle("c1")
        store.activate_cycle("c2")
        statuses = {c.id: c.status for c in store.load_cycles()}
        assert statuses == {"c1": "completed", "c2": "active"}
        assert store.get_active_cycle().id == "c2"

    def test_save_active_cycle_demotes_current(self, store):
        store.save_cycle(_cycle("c1", status="active"))
        store.save_cycle(_cycle("c2", status="active"))
        assert [c.id for c in store.load_cycles() if c.status == "active"] == ["c2"]

    def test_activate_unknown(self, store):
        with pytest.raises(ValidationError):
            store.activate_cycle("nope")

    def test_update_cycle_enforces_immutability(self, store):
        _seed(store)
        cycle = _cycle()
        store.save_cycle(cycle)
        cycle.name = "Renamed"
        store.update_cycle(cycle)
        assert store.get_cycle("c1").name == "Renamed"

        store.save_workouts(build_schedule(cycle, store.load_exercises(), {}))
        cycle.rfem_rotation = [5]
        with pytest.raises(ConfigurationError):
            store.update_cycle(cycle)

    def test_update_cannot_activate(self, store):
        cycle = _cycle()
        store.save_cycle(cycle)
        cycle.status = "active"
        with pytest.raises(ValidationError):
            store.update_cycle(cycle)


# ===========================================================================
# Workouts
# ===========================================================================

class TestWorkouts:
    def _schedule(self, store):
        _seed(store)
        cycle = _cycle()
        store.save_cycle(cycle)
        workouts = build_schedule(cycle, store.load_exercises(), store.latest_max_records())
        store.save_workouts(workouts)
        return cycle, workouts

    def test_workouts_round_trip(self, store):
        _, workouts = self._schedule(store)
        assert store.load_workouts("c1") == workouts

    def test_serialized_detail_is_tagged(self, store):
        _, workouts = self._schedule(store)
        kinds = {s["detail"]["kind"] for w in workouts for s in workout_to_dict(w)["scheduled_sets"]}
        assert kinds == {"rfem", "simple", "conditioning"}

    def test_unknown_detail_kind(self, store):
        _, workouts = self._schedule(store)
        data = workout_to_dict(workouts[0])
        data["scheduled_sets"][0]["detail"]["kind"] = "mystery"
        with pytest.raises(ValidationError):
            dict_to_workout(data)

    def test_update_status(self, store):
        _, workouts = self._schedule(store)
        now = datetime(2026, 10, 20, 18, 0)
        store.update_workout_status(workouts[0].id, "completed", now=now)
        store.update_workout_status(workouts[1].id, "skipped", skip_reason="travel")
        by_id = {w.id: w for w in store.load_workouts()}
        assert by_id[workouts[0].id].completed_at == now
        assert by_id[workouts[1].id].skip_reason == "travel"
        assert by_id[workouts[1].id].completed_at is None

    def test_update_status_rejects_unknown(self, store):
        _, workouts = self._schedule(store)
        with pytest.raises(ValidationError):
            store.update_workout_status(workouts[0].id, "done")
        with pytest.raises(ValidationError):
            store.update_workout_status("nope", "completed")

    def test_replace_from_sequence(self, store):
        cycle, workouts = self._schedule(store)
        rebuilt = build_schedule(cycle, store.load_exercises(), {}, start_from_workout=3)
        removed = store.replace_workouts("c1", rebuilt, start_from_workout=3)
        assert removed == 2
        stored = store.load_workouts("c1")
        assert [w.sequence_number for w in stored] == [1, 2, 3, 4]
        assert [w.id for w in stored[:2]] == [w.id for w in workouts[:2]]
        assert [w.id for w in stored[2:]] == [w.id for w in rebuilt]

    def test_reconcile_removes_duplicates(self, store):
        cycle, _ = self._schedule(store)
        # A second generation run leaves every position doubled.
        store.save_workouts(build_schedule(cycle, store.load_exercises(), {}))
        assert len(store.load_workouts()) == 8
        result = store.reconcile_workouts()
        assert len(result.removed_ids) == 4
        assert [w.sequence_number for w in store.load_workouts()] == [1, 2, 3, 4]
        assert store.reconcile_workouts().removed_ids == []

    def test_save_max_testing_plan(self, store):
        _seed(store)
        store.save_cycle(_cycle("c1", status="active"))
        exercises = store.load_exercises()
        plan = plan_max_testing(
            [
                MaxTestCandidate(exercises["pull_up"]),
                MaxTestCandidate(exercises["dip"]),
                MaxTestCandidate(exercises["plank"], new_conditioning_base=60),
            ],
            previous_cycle=store.get_active_cycle(),
        )
        store.save_max_testing_plan(plan)

        statuses = {c.id: c.status for c in store.load_cycles()}
        assert statuses == {"c1": "completed", plan.cycle.id: "active"}
        assert len(store.load_workouts(plan.cycle.id)) == 1
        assert store.load_exercises()["plank"].default_conditioning_time == 60

    def test_failed_max_testing_save_leaves_store_untouched(self, store):
        cycle, workouts = self._schedule(store)
        store.activate_cycle(cycle.id)
        exercises = store.load_exercises()
        plan = plan_max_testing(
            [MaxTestCandidate(exercises["pull_up"]), MaxTestCandidate(exercises["plank"], new_conditioning_base=60)],
            previous_cycle=store.get_active_cycle(),
        )
        plan.workouts[0].id = workouts[0].id

        with pytest.raises(ValidationError):
            store.save_max_testing_plan(plan)

        assert store.get_active_cycle().id == cycle.id
        assert [c.id for c in store.load_cycles()] == [cycle.id]
        assert store.load_workouts(plan.cycle.id) == []
        assert len(store.load_workouts()) == len(workouts)
        assert store.load_exercises()["plank"].default_conditioning_time == 30

    def test_reconcile_drops_same_id_copies(self, store):
        _, workouts = self._schedule(store)
        data = json.loads(store.workouts_path.read_text())
        store.workouts_path.write_text(json.dumps(data + [data[0]]))
        result = store.reconcile_workouts()
        assert result.dropped == 1
        assert result.removed_ids == []
        assert len(store.load_workouts()) == len(workouts)


# ===========================================================================
# Cycle files and defaults
# ===========================================================================

class TestCycleDefinitions:
    def test_defaults_fill_missing_keys(self):
        data = {
            "name": "Spring",
            "start_date": "2026-10-19",
            "groups": [{"name": "Pull", "exercises": ["pull_up"]}, {"name": "Push", "exercises": ["dip"]}],
        }
        cycle = dict_to_cycle(data, load_cycle_defaults())
        assert cycle.number_of_weeks == 4
        assert cycle.workout_days_per_week == 3
        assert cycle.rfem_rotation == [3, 4, 5, 4]
        assert cycle.group_rotation == ["Pull", "Push"]
        assert cycle.groups[0].exercise_assignments == [ExerciseAssignment("pull_up")]
        assert cycle.conditioning_weekly_rep_increment == 2

    def test_bad_date(self):
        with pytest.raises(ValidationError):
            dict_to_cycle({"name": "X", "start_date": "19.10.2026"})

    def test_bad_enum_is_validation_error(self):
        with pytest.raises(ValidationError):
            dict_to_cycle({"name": "X", "progression_mode": "fast"})

    def test_user_defaults_override(self, tmp_path):
        user = tmp_path / "defaults.yaml"
        user.write_text("cycle:\n  number_of_weeks: 6\n")
        cfg = load_cycle_defaults(user)
        assert cfg["cycle"]["number_of_weeks"] == 6
        assert cfg["cycle"]["workout_days_per_week"] == 3

    def test_broken_user_defaults_ignored(self, tmp_path):
        user = tmp_path / "defaults.yaml"
        user.write_text("cycle: [unclosed\n")
        with pytest.warns(ScheduleWarning):
            cfg = load_cycle_defaults(user)
        assert cfg["cycle"]["number_of_weeks"] == 4

    @pytest.mark.parametrize("data", [
        {"name": "X", "rfem_rotation": 3},
        {"name": "X", "groups": ["name"]},
        {"name": "X", "groups": {"name": "Pull"}},
        {"name": "X", "groups": [{"name": "Pull", "exercises": [5]}]},
        {"name": "X", "number_of_weeks": "four"},
        {"name": "X", "weekly_set_goals": [7]},
    ])
    def test_malformed_shapes_are_validation_errors(self, data):
        with pytest.raises(ValidationError):
            dict_to_cycle(data)
