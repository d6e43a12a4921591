"""
Error taxonomy for the scheduling engine.

ConfigurationError is the caller's fault (bad cycle setup) and is not
retryable until the configuration changes.  ValidationError is a user
selection problem that should be surfaced directly.
"""

import warnings


class SchedulerError(Exception):
    """Base class for all cycle-scheduler errors."""

    pass


class ConfigurationError(SchedulerError, ValueError):
    """Raised when a cycle cannot be scheduled as configured."""

    pass


class ValidationError(SchedulerError, ValueError):
    """Raised when user-supplied data or selections are invalid."""

    pass


class ScheduleWarning(UserWarning):
    """Non-fatal problem encountered while generating a schedule."""

    pass


def warn(message: str) -> None:
    """Emit a ScheduleWarning attributed to the engine's caller."""
    warnings.warn(message, ScheduleWarning, stacklevel=3)
