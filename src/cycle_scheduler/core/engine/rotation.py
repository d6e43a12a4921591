"""
Group rotation scheduling.

Maps a cycle's week/day grid onto its group and RFEM rotations, producing
the day skeleton before any set-level detail is filled in.  Both rotations
are indexed by the workout's position in the whole cycle, so a 3,4,5,4
RFEM wave keeps rolling across week boundaries regardless of how many
days per week are configured.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from ..models import Cycle, Rotation


@dataclass(frozen=True)
class DaySlot:
    """One entry of the schedule skeleton."""

    sequence_number: int  # 1-indexed over the cycle
    week_number: int      # 1-indexed
    day_in_week: int      # 1-indexed
    group_index: int      # index into the group rotation
    group_id: str
    rfem_value: int


def build_skeleton(
    rotation: Rotation,
    number_of_weeks: int,
    days_per_week: int,
) -> list[DaySlot]:
    """
    Expand a rotation over the cycle grid.

    The workout with sequence number n uses rotation entry (n - 1) modulo
    the rotation length, for groups and RFEM values independently.

    Args:
        rotation: Non-empty group and RFEM rotations
        number_of_weeks: Weeks in the cycle
        days_per_week: Workout days per week

    Returns:
        weeks × days_per_week slots in sequence order
    """
    slots: list[DaySlot] = []
    position = 0
    for week in range(1, number_of_weeks + 1):
        for day in range(1, days_per_week + 1):
            group_index = position % len(rotation.group_ids)
            slots.append(
                DaySlot(
                    sequence_number=position + 1,
                    week_number=week,
                    day_in_week=day,
                    group_index=group_index,
                    group_id=rotation.group_ids[group_index],
                    rfem_value=rotation.rfem_at(position),
                )
            )
            position += 1
    return slots


def cycle_skeleton(cycle: Cycle) -> list[DaySlot]:
    """Skeleton for a cycle; raises ConfigurationError on empty rotations."""
    return build_skeleton(cycle.rotation, cycle.number_of_weeks, cycle.workout_days_per_week)


def calculate_workout_dates(
    start_date: date,
    number_of_weeks: int,
    selected_days: list[int],
) -> list[date]:
    """
    Calculate dates for a date-based cycle.

    Weekdays use Python's numbering (Monday = 0).  In the first calendar
    week only days on or after the start date are included; later weeks
    include every selected day.

    Args:
        start_date: First day of the cycle
        number_of_weeks: Calendar weeks to cover
        selected_days: Training weekdays

    Returns:
        Dates in chronological order
    """
    if not selected_days:
        return []

    days = sorted(set(selected_days))
    week_start = start_date - timedelta(days=start_date.weekday())
    dates: list[date] = []

    for week in range(number_of_weeks):
        monday = week_start + timedelta(days=week * 7)
        for weekday in days:
            d = monday + timedelta(days=weekday)
            if d < start_date:
                continue
            dates.append(d)

    return dates
