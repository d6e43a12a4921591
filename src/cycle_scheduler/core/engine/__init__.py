"""
Cycle scheduling and progression engine.

Pure functions over in-memory records: nothing here performs I/O.
"""

from .activation import activate_cycle, active_cycle
from .builder import build_schedule
from .max_testing import MaxTestCandidate, MaxTestingPlan, plan_max_testing
from .progression import compute_set_target, compute_set_weight, resolve_exercise_mode
from .reconcile import ReconcileResult, reconcile_duplicates
from .validation import CycleValidation, ensure_cycle_mutable, validate_cycle

__all__ = [
    "activate_cycle",
    "active_cycle",
    "build_schedule",
    "MaxTestCandidate",
    "MaxTestingPlan",
    "plan_max_testing",
    "compute_set_target",
    "compute_set_weight",
    "resolve_exercise_mode",
    "ReconcileResult",
    "reconcile_duplicates",
    "CycleValidation",
    "ensure_cycle_mutable",
    "validate_cycle",
]
