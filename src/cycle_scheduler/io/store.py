"""
File-backed storage for exercises, max records, cycles and workouts.

Layout of the data directory:
- exercises.json      exercise definitions
- max_records.jsonl   one MaxRecord per line, append-only
- cycles.json         all cycles
- workouts.json       scheduled workouts of every cycle

Every multi-record change is a locked read-modify-write finished by an
atomic file replace, so readers never observe a half-applied update
(in particular, never two active cycles).
"""

import json
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.engine.activation import activate_cycle as activate_in
from ..core.engine.activation import active_cycle
from ..core.engine.max_testing import MaxTestingPlan
from ..core.engine.reconcile import ReconcileResult, reconcile_duplicates
from ..core.engine.validation import ensure_cycle_mutable
from ..core.errors import ValidationError
from ..core.metrics import latest_max_records
from ..core.models import Cycle, Exercise, MaxRecord, ScheduledWorkout, WORKOUT_STATUSES, WorkoutStatus
from .serializers import (
    cycle_to_dict,
    dict_to_cycle,
    dict_to_exercise,
    dict_to_max_record,
    dict_to_workout,
    exercise_to_dict,
    max_record_to_dict,
    to_json_line,
    workout_to_dict,
)


class PlannerStore:
    """
    Manages all planner data under one directory.

    Loads return fresh objects on every call; nothing is cached between
    calls, so a store instance can be shared by concurrent callers.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the data files
        """
        self.data_dir = Path(data_dir)
        self.exercises_path = self.data_dir / "exercises.json"
        self.max_records_path = self.data_dir / "max_records.jsonl"
        self.cycles_path = self.data_dir / "cycles.json"
        self.workouts_path = self.data_dir / "workouts.json"
        self._lock = threading.RLock()

    def exists(self) -> bool:
        """Check if the data directory has been initialized."""
        return self.cycles_path.exists()

    def init(self) -> None:
        """
        Create the data directory and empty data files if missing.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.exercises_path, self.cycles_path, self.workouts_path):
            if not path.exists():
                self._write_json(path, [])
        if not self.max_records_path.exists():
            self.max_records_path.touch()

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _check_initialized(self) -> None:
        if not self.data_dir.exists():
            raise FileNotFoundError(
                f"Data directory not found: {self.data_dir}. Run 'init' first."
            )

    def _read_json(self, path: Path) -> list[dict[str, Any]]:
        self._check_initialized()
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {path}: {e}") from e
        if not isinstance(data, list):
            raise ValidationError(f"Expected a JSON list in {path}")
        return data

    def _write_json(self, path: Path, data: list[dict[str, Any]]) -> None:
        """Write via a temporary file and os.replace so the swap is atomic."""
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    # ------------------------------------------------------------------
    # Exercises and max records
    # ------------------------------------------------------------------

    def load_exercises(self) -> dict[str, Exercise]:
        """
        Load all exercises.

        Returns:
            {exercise_id: Exercise} in file order

        Raises:
            ValidationError: If the file is malformed
        """
        result: dict[str, Exercise] = {}
        for i, data in enumerate(self._read_json(self.exercises_path), 1):
            try:
                exercise = dict_to_exercise(data)
            except ValidationError as e:
                raise ValidationError(f"Error in exercise {i} of {self.exercises_path}: {e}") from e
            result[exercise.id] = exercise
        return result

    def save_exercise(self, exercise: Exercise) -> None:
        """Add an exercise, or replace the stored one with the same id."""
        with self._lock:
            exercises = self.load_exercises()
            exercises[exercise.id] = exercise
            self._write_json(self.exercises_path, [exercise_to_dict(e) for e in exercises.values()])

    def load_max_records(self) -> list[MaxRecord]:
        """
        Load the max record history, oldest first.

        Raises:
            ValidationError: If a line cannot be parsed
        """
        self._check_initialized()
        if not self.max_records_path.exists():
            return []

        records: list[MaxRecord] = []
        with open(self.max_records_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(dict_to_max_record(json.loads(line)))
                except (json.JSONDecodeError, ValidationError, KeyError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.max_records_path}: {e}"
                    ) from e

        records.sort(key=lambda r: r.recorded_at)
        return records

    def append_max_record(self, record: MaxRecord) -> None:
        """
        Append a max record.

        Raises:
            ValidationError: If the exercise is unknown
        """
        with self._lock:
            if record.exercise_id not in self.load_exercises():
                raise ValidationError(f"Unknown exercise: {record.exercise_id}")
            with open(self.max_records_path, "a", encoding="utf-8") as f:
                f.write(to_json_line(max_record_to_dict(record)) + "\n")

    def latest_max_records(self) -> dict[str, MaxRecord]:
        """Most recent MaxRecord per exercise id."""
        return latest_max_records(self.load_max_records())

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def load_cycles(self) -> list[Cycle]:
        """
        Load all cycles in creation order.

        Raises:
            ValidationError: If the file is malformed
        """
        return [dict_to_cycle(data) for data in self._read_json(self.cycles_path)]

    def _write_cycles(self, cycles: list[Cycle]) -> None:
        self._write_json(self.cycles_path, [cycle_to_dict(c) for c in cycles])

    def get_cycle(self, cycle_id: str) -> Cycle | None:
        """Find a cycle by id."""
        for cycle in self.load_cycles():
            if cycle.id == cycle_id:
                return cycle
        return None

    def get_active_cycle(self) -> Cycle | None:
        """Return the single active cycle, or None."""
        return active_cycle(self.load_cycles())

    def save_cycle(self, cycle: Cycle) -> None:
        """
        Store a new cycle.

        A cycle saved as active demotes the current active cycle in the
        same write.

        Raises:
            ValidationError: If a cycle with the same id already exists
        """
        with self._lock:
            cycles = self.load_cycles()
            if any(c.id == cycle.id for c in cycles):
                raise ValidationError(f"Cycle {cycle.id} already exists; use update_cycle")
            cycles.append(cycle)
            if cycle.status == "active":
                cycles = activate_in(cycles, cycle.id)
            self._write_cycles(cycles)

    def activate_cycle(self, cycle_id: str, now: datetime | None = None) -> Cycle:
        """
        Make cycle_id the only active cycle.

        The previously active cycle becomes completed in the same atomic
        write.

        Returns:
            The activated cycle

        Raises:
            ValidationError: If cycle_id is unknown
        """
        with self._lock:
            cycles = activate_in(self.load_cycles(), cycle_id, now=now)
            self._write_cycles(cycles)
        return next(c for c in cycles if c.id == cycle_id)

    def update_cycle(self, cycle: Cycle, now: datetime | None = None) -> Cycle:
        """
        Replace a stored cycle.

        Status changes go through activate_cycle(); groups and rotations
        are frozen once the cycle has workouts.

        Returns:
            The stored cycle with a fresh updated_at

        Raises:
            ValidationError: If the cycle is unknown or tries to become active
            ConfigurationError: If frozen fields changed
        """
        with self._lock:
            cycles = self.load_cycles()
            index = next((i for i, c in enumerate(cycles) if c.id == cycle.id), None)
            if index is None:
                raise ValidationError(f"Unknown cycle: {cycle.id}")

            current = cycles[index]
            if cycle.status == "active" and current.status != "active":
                raise ValidationError("Use activate_cycle to make a cycle active")
            ensure_cycle_mutable(current, cycle, self.load_workouts(cycle.id))

            cycle.updated_at = now or datetime.now()
            cycles[index] = cycle
            self._write_cycles(cycles)
        return cycle

    # ------------------------------------------------------------------
    # Workouts
    # ------------------------------------------------------------------

    def _load_all_workouts(self) -> list[ScheduledWorkout]:
        workouts = []
        for i, data in enumerate(self._read_json(self.workouts_path), 1):
            try:
                workouts.append(dict_to_workout(data))
            except ValidationError as e:
                raise ValidationError(f"Error in workout {i} of {self.workouts_path}: {e}") from e
        return workouts

    def _write_workouts(self, workouts: list[ScheduledWorkout]) -> None:
        self._write_json(self.workouts_path, [workout_to_dict(w) for w in workouts])

    def load_workouts(self, cycle_id: str | None = None) -> list[ScheduledWorkout]:
        """
        Load scheduled workouts.

        Args:
            cycle_id: Only return this cycle's workouts

        Returns:
            Workouts sorted by sequence number within each cycle
        """
        workouts = self._load_all_workouts()
        if cycle_id is not None:
            workouts = [w for w in workouts if w.cycle_id == cycle_id]
        return sorted(workouts, key=lambda w: (w.cycle_id, w.sequence_number))

    def save_workouts(self, workouts: list[ScheduledWorkout]) -> None:
        """
        Append new workouts.

        Raises:
            ValidationError: If a workout id is already stored
        """
        with self._lock:
            stored = self._load_all_workouts()
            ids = {w.id for w in stored}
            for w in workouts:
                if w.id in ids:
                    raise ValidationError(f"Workout {w.id} already exists")
                ids.add(w.id)
            self._write_workouts(stored + list(workouts))

    def replace_workouts(
        self,
        cycle_id: str,
        workouts: list[ScheduledWorkout],
        start_from_workout: int = 1,
    ) -> int:
        """
        Swap a cycle's regular workouts from a sequence number onward.

        Ad-hoc workouts and workouts before start_from_workout are kept.

        Returns:
            Number of workouts removed
        """
        with self._lock:
            stored = self._load_all_workouts()
            kept = [
                w for w in stored
                if w.cycle_id != cycle_id
                or w.is_ad_hoc
                or w.sequence_number < start_from_workout
            ]
            self._write_workouts(kept + list(workouts))
        return len(stored) - len(kept)

    def delete_workouts(self, workout_ids: set[str]) -> int:
        """
        Delete workouts by id.

        Returns:
            Number of workouts deleted
        """
        with self._lock:
            stored = self._load_all_workouts()
            kept = [w for w in stored if w.id not in workout_ids]
            self._write_workouts(kept)
        return len(stored) - len(kept)

    def reconcile_workouts(self) -> ReconcileResult:
        """
        Drop duplicate workouts at the same (cycle, sequence number).

        Returns:
            ReconcileResult; the file is only rewritten when something was removed
        """
        with self._lock:
            stored = self._load_all_workouts()
            result = reconcile_duplicates(stored)
            if result.dropped:
                self._write_workouts(result.kept)
        return result

    def update_workout_status(
        self,
        workout_id: str,
        status: WorkoutStatus,
        skip_reason: str | None = None,
        now: datetime | None = None,
    ) -> ScheduledWorkout:
        """
        Set a workout's status.

        completed_at is stamped for completed or partial workouts and
        cleared otherwise; skip_reason is only kept for skipped ones.

        Raises:
            ValidationError: If the workout or status is unknown
        """
        if status not in WORKOUT_STATUSES:
            raise ValidationError(f"Invalid workout status: {status}")

        with self._lock:
            workouts = self._load_all_workouts()
            workout = next((w for w in workouts if w.id == workout_id), None)
            if workout is None:
                raise ValidationError(f"Unknown workout: {workout_id}")

            workout.status = status
            workout.completed_at = (now or datetime.now()) if status in ("completed", "partial") else None
            workout.skip_reason = skip_reason if status == "skipped" else None
            self._write_workouts(workouts)
        return workout

    # ------------------------------------------------------------------
    # Max testing
    # ------------------------------------------------------------------

    def save_max_testing_plan(self, plan: MaxTestingPlan) -> None:
        """
        Persist a max-testing plan as one unit.

        Every check runs before the first write.  Workouts are written
        before cycles, so the new cycle never becomes active without its
        workouts.  Updated conditioning baselines are written last.

        Raises:
            ValidationError: If the cycle or a workout id is already stored
        """
        with self._lock:
            cycles = self.load_cycles()
            if any(c.id == plan.cycle.id for c in cycles):
                raise ValidationError(f"Cycle {plan.cycle.id} already exists")
            stored = self._load_all_workouts()
            ids = {w.id for w in stored}
            for w in plan.workouts:
                if w.id in ids:
                    raise ValidationError(f"Workout {w.id} already exists")
                ids.add(w.id)
            exercises = self.load_exercises()

            if plan.completed_cycle is not None:
                cycles = [plan.completed_cycle if c.id == plan.completed_cycle.id else c for c in cycles]
            cycles = activate_in(cycles + [plan.cycle], plan.cycle.id)

            self._write_workouts(stored + list(plan.workouts))
            self._write_cycles(cycles)
            if plan.updated_exercises:
                for exercise in plan.updated_exercises:
                    exercises[exercise.id] = exercise
                self._write_json(self.exercises_path, [exercise_to_dict(e) for e in exercises.values()])


def get_default_data_dir() -> Path:
    """
    Get the default data directory.

    Returns:
        ~/.cycle-scheduler
    """
    return Path.home() / ".cycle-scheduler"


def get_default_store() -> PlannerStore:
    """
    Get a PlannerStore at the default location.

    Returns:
        PlannerStore instance
    """
    return PlannerStore(get_default_data_dir())
