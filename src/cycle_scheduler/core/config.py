"""
Configuration constants for the cycle scheduling engine.

All adjustable parameters are centralized here for easy tuning.
Cycle-creation defaults that users may override live in defaults.yaml
(see core/engine/config_loader.py).
"""

from typing import Final

# =============================================================================
# ENUMERATIONS
# =============================================================================

EXERCISE_TYPES: Final[tuple[str, ...]] = (
    "push",
    "pull",
    "legs",
    "core",
    "balance",
    "mobility",
    "other",
)

EXERCISE_TYPE_LABELS: Final[dict[str, str]] = {
    "push": "Push",
    "pull": "Pull",
    "legs": "Legs",
    "core": "Core",
    "balance": "Balance",
    "mobility": "Mobility",
    "other": "Other",
}

PROGRESSION_MODE_LABELS: Final[dict[str, str]] = {
    "rfem": "RFEM Training",
    "simple": "Simple Progression",
    "mixed": "Mixed (Per-Exercise)",
}

# =============================================================================
# RFEM (Reps From Established Max)
# =============================================================================

RFEM_MIN_TARGET_REPS: Final[int] = 1
RFEM_MIN_TARGET_SECONDS: Final[int] = 5
RFEM_TIME_PERCENTAGE: Final[float] = 0.10  # Fraction of max time removed per RFEM point

# RFEM value used for max-testing days ("not an RFEM day")
MAX_TEST_RFEM: Final[int] = 0

# =============================================================================
# SIMPLE PROGRESSION
# =============================================================================

SIMPLE_DEFAULT_BASE_REPS: Final[int] = 10
SIMPLE_DEFAULT_BASE_SECONDS: Final[int] = 30

# =============================================================================
# CONDITIONING
# =============================================================================

CONDITIONING_DEFAULT_BASE_REPS: Final[int] = 10
CONDITIONING_DEFAULT_BASE_SECONDS: Final[int] = 30
CONDITIONING_DEFAULT_REP_INCREMENT: Final[int] = 2
CONDITIONING_DEFAULT_TIME_INCREMENT: Final[int] = 5

# =============================================================================
# WARM-UP
# =============================================================================

WARMUP_PERCENTAGE: Final[int] = 20  # General training warm-up, % of latest max
MAX_TEST_WARMUP_PERCENTAGE: Final[int] = 20
WARMUP_MIN_REPS: Final[int] = 1
WARMUP_MIN_SECONDS: Final[int] = 5

# =============================================================================
# CYCLE LIMITS
# =============================================================================

MIN_DAYS_PER_WEEK: Final[int] = 1
MAX_DAYS_PER_WEEK: Final[int] = 7
MIN_CYCLE_WEEKS: Final[int] = 1
MAX_CYCLE_WEEKS: Final[int] = 52

MAX_TEST_SINGLE_DAY_NAME: Final[str] = "Max Test"
MAX_TEST_DAY_NAME: Final[str] = "Max Test Day {n}"
MAX_TEST_CYCLE_NAME: Final[str] = "Max Testing Cycle {n}"
