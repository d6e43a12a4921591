"""
Derived metrics over max records and scheduled workouts.
"""

from dataclasses import dataclass

from .models import MaxRecord, ScheduledWorkout


@dataclass
class CycleProgress:
    """Progress through a cycle's regular (non-ad-hoc) workouts."""

    completed: int
    skipped: int
    total: int

    @property
    def passed(self) -> int:
        return self.completed + self.skipped

    @property
    def fraction(self) -> float:
        return self.passed / self.total if self.total else 0.0


def latest_max_records(records: list[MaxRecord]) -> dict[str, MaxRecord]:
    """
    Most recent MaxRecord per exercise.

    Args:
        records: Max record history in any order

    Returns:
        {exercise_id: latest record}; ties on recorded_at keep the later entry
    """
    latest: dict[str, MaxRecord] = {}
    for r in records:
        current = latest.get(r.exercise_id)
        if current is None or r.recorded_at >= current.recorded_at:
            latest[r.exercise_id] = r
    return latest


def cycle_progress(workouts: list[ScheduledWorkout]) -> CycleProgress:
    """Count completed and skipped workouts, ignoring ad-hoc ones."""
    regular = [w for w in workouts if not w.is_ad_hoc]
    return CycleProgress(
        completed=sum(1 for w in regular if w.status == "completed"),
        skipped=sum(1 for w in regular if w.status == "skipped"),
        total=len(regular),
    )


def next_pending_workout(workouts: list[ScheduledWorkout]) -> ScheduledWorkout | None:
    """First pending or partially done regular workout in sequence order."""
    candidates = [
        w for w in workouts
        if not w.is_ad_hoc and w.status in ("pending", "partial")
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda w: w.sequence_number)
