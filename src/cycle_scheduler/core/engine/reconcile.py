"""
Duplicate workout reconciliation.

Generation may run more than once for the same cycle when devices edit
offline and sync later, leaving several workouts at one
(cycle_id, sequence_number) position.  Reconciliation keeps exactly one
per position so the schedule converges, even if not atomically.
"""

from dataclasses import dataclass, field

from ..models import ScheduledWorkout


@dataclass
class ReconcileResult:
    """
    Workouts to keep, plus ids the caller must delete (locally and remotely).

    dropped counts every discarded copy, including exact copies that share
    the winner's id and so never appear in removed_ids.
    """

    kept: list[ScheduledWorkout]
    removed_ids: list[str] = field(default_factory=list)
    dropped: int = 0


def _precedence(workout: ScheduledWorkout) -> tuple[bool, bool, str]:
    """
    Sort key of a duplicate; the maximum wins.

    1. has at least one warm-up set
    2. completed or partial over pending/skipped
    3. lexicographically later id
    """
    return (workout.has_warmup, workout.is_started, workout.id)


def reconcile_duplicates(workouts: list[ScheduledWorkout]) -> ReconcileResult:
    """
    Keep one workout per (cycle_id, sequence_number).

    Ad-hoc workouts never collide and are always kept.  Input order is
    preserved among kept workouts, so an already clean list comes back
    unchanged with no removed ids.

    Args:
        workouts: Persisted workouts (one or several cycles)

    Returns:
        ReconcileResult
    """
    positions: dict[tuple[str, int], list[ScheduledWorkout]] = {}
    for w in workouts:
        if w.is_ad_hoc:
            continue
        positions.setdefault((w.cycle_id, w.sequence_number), []).append(w)

    losers: set[int] = set()
    removed_ids: list[str] = []
    for members in positions.values():
        if len(members) < 2:
            continue
        winner = max(members, key=_precedence)
        for m in members:
            if m is winner:
                continue
            losers.add(id(m))
            if m.id != winner.id and m.id not in removed_ids:
                removed_ids.append(m.id)

    kept = [w for w in workouts if id(w) not in losers]
    return ReconcileResult(kept=kept, removed_ids=removed_ids, dropped=len(losers))
