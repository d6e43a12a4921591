"""
Cycle activation.

At most one cycle may be active.  activate_cycle() computes the complete
new state in one step; the persistence layer must write that state as a
single atomic unit so no reader ever sees two active cycles.
"""

from dataclasses import replace
from datetime import datetime

from ..errors import ValidationError
from ..models import Cycle


def active_cycle(cycles: list[Cycle]) -> Cycle | None:
    """Return the active cycle, or None."""
    for c in cycles:
        if c.status == "active":
            return c
    return None


def activate_cycle(
    cycles: list[Cycle],
    cycle_id: str,
    now: datetime | None = None,
) -> list[Cycle]:
    """
    Return the cycle list with cycle_id active and every other active cycle completed.

    Args:
        cycles: All cycles
        cycle_id: Cycle to activate
        now: Timestamp for updated_at

    Returns:
        New list; unchanged cycles are the same objects

    Raises:
        ValidationError: If cycle_id is unknown
    """
    if not any(c.id == cycle_id for c in cycles):
        raise ValidationError(f"Unknown cycle: {cycle_id}")

    now = now or datetime.now()
    result: list[Cycle] = []
    for c in cycles:
        if c.id == cycle_id:
            result.append(c if c.status == "active" else replace(c, status="active", updated_at=now))
        elif c.status == "active":
            result.append(replace(c, status="completed", updated_at=now))
        else:
            result.append(c)
    return result
