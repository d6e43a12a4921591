"""
JSON serialization for cycle-scheduler data models.

Handles conversion between dataclasses and JSON-compatible dicts.  Cycle
definitions written by hand (YAML files) go through the same functions,
with missing keys filled from the cycle defaults.
"""

import json
import re
from datetime import date, datetime
from typing import Any

from ..core.errors import ValidationError
from ..core.models import (
    ConditioningDetail,
    Cycle,
    Exercise,
    ExerciseAssignment,
    Group,
    MaxRecord,
    MaxTestDetail,
    RfemDetail,
    ScheduledSet,
    ScheduledWorkout,
    SetDetail,
    SimpleDetail,
    SimpleProgression,
    WarmupDetail,
    new_id,
)


def validate_date(date_str: str) -> date:
    """
    Parse an ISO date string.

    Args:
        date_str: YYYY-MM-DD string

    Returns:
        Parsed date

    Raises:
        ValidationError: If date format is invalid
    """
    if isinstance(date_str, date):
        return date_str
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e


def _parse_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid timestamp: {value!r}") from e


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _build(cls, **kwargs):
    """Construct a model, turning its ValueError checks into ValidationError."""
    try:
        return cls(**kwargs)
    except ValidationError:
        raise
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {cls.__name__}: {e}") from e


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def _as_mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError(f"{what} must be a mapping, got {value!r}")
    return value


def _as_list(value: Any, what: str) -> list[Any]:
    if not isinstance(value, list):
        raise ValidationError(f"{what} must be a list, got {value!r}")
    return value


# ---------------------------------------------------------------------------
# Exercises and max records
# ---------------------------------------------------------------------------


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    """Convert Exercise to JSON-compatible dict."""
    return _drop_none({
        "id": exercise.id,
        "name": exercise.name,
        "type": exercise.type,
        "mode": exercise.mode,
        "measurement_type": exercise.measurement_type,
        "notes": exercise.notes,
        "default_conditioning_reps": exercise.default_conditioning_reps,
        "default_conditioning_time": exercise.default_conditioning_time,
        "weight_enabled": exercise.weight_enabled,
        "default_weight": exercise.default_weight,
    })


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert dict to Exercise.

    Raises:
        ValidationError: If data is invalid
    """
    if "id" not in data or "name" not in data or "type" not in data:
        raise ValidationError(f"Exercise needs id, name and type: {data!r}")
    return _build(
        Exercise,
        id=str(data["id"]),
        name=str(data["name"]),
        type=data["type"],
        mode=data.get("mode", "standard"),
        measurement_type=data.get("measurement_type", "reps"),
        notes=data.get("notes", ""),
        default_conditioning_reps=data.get("default_conditioning_reps"),
        default_conditioning_time=data.get("default_conditioning_time"),
        weight_enabled=bool(data.get("weight_enabled", False)),
        default_weight=data.get("default_weight"),
    )


def max_record_to_dict(record: MaxRecord) -> dict[str, Any]:
    """Convert MaxRecord to JSON-compatible dict."""
    return _drop_none({
        "id": record.id,
        "exercise_id": record.exercise_id,
        "max_reps": record.max_reps,
        "max_time": record.max_time,
        "weight": record.weight,
        "recorded_at": record.recorded_at.isoformat(),
        "notes": record.notes or None,
    })


def dict_to_max_record(data: dict[str, Any]) -> MaxRecord:
    """
    Convert dict to MaxRecord.

    Raises:
        ValidationError: If data is invalid
    """
    recorded_at = _parse_datetime(data.get("recorded_at"))
    if recorded_at is None:
        raise ValidationError("MaxRecord needs recorded_at")
    return _build(
        MaxRecord,
        id=data.get("id") or new_id(),
        exercise_id=str(data["exercise_id"]),
        recorded_at=recorded_at,
        max_reps=data.get("max_reps"),
        max_time=data.get("max_time"),
        weight=data.get("weight"),
        notes=data.get("notes", ""),
    )


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


def _progression_to_dict(p: SimpleProgression | None) -> dict[str, Any] | None:
    if p is None:
        return None
    return _drop_none({"base": p.base, "interval": p.interval, "increment": p.increment})


def _dict_to_progression(data: dict[str, Any] | None) -> SimpleProgression | None:
    if data is None:
        return None
    data = _as_mapping(data, "Simple progression")
    return _build(
        SimpleProgression,
        base=data.get("base"),
        interval=data.get("interval", "constant"),
        increment=data.get("increment", 0.0),
    )


def assignment_to_dict(a: ExerciseAssignment) -> dict[str, Any]:
    """Convert ExerciseAssignment to JSON-compatible dict (unset fields omitted)."""
    return _drop_none({
        "exercise_id": a.exercise_id,
        "progression_mode": a.progression_mode,
        "include_warmup": a.include_warmup,
        "conditioning_base_reps": a.conditioning_base_reps,
        "conditioning_base_time": a.conditioning_base_time,
        "conditioning_rep_increment": a.conditioning_rep_increment,
        "conditioning_time_increment": a.conditioning_time_increment,
        "simple_reps": _progression_to_dict(a.simple_reps),
        "simple_time": _progression_to_dict(a.simple_time),
        "simple_weight": _progression_to_dict(a.simple_weight),
    })


def dict_to_assignment(data: dict[str, Any] | str) -> ExerciseAssignment:
    """
    Convert dict to ExerciseAssignment.

    A bare string is shorthand for an assignment without overrides.
    """
    if isinstance(data, str):
        return ExerciseAssignment(exercise_id=data)
    data = _as_mapping(data, "Exercise assignment")
    if "exercise_id" not in data:
        raise ValidationError(f"Exercise assignment needs exercise_id: {data!r}")
    return _build(
        ExerciseAssignment,
        exercise_id=str(data["exercise_id"]),
        progression_mode=data.get("progression_mode"),
        include_warmup=data.get("include_warmup"),
        conditioning_base_reps=data.get("conditioning_base_reps"),
        conditioning_base_time=data.get("conditioning_base_time"),
        conditioning_rep_increment=data.get("conditioning_rep_increment"),
        conditioning_time_increment=data.get("conditioning_time_increment"),
        simple_reps=_dict_to_progression(data.get("simple_reps")),
        simple_time=_dict_to_progression(data.get("simple_time")),
        simple_weight=_dict_to_progression(data.get("simple_weight")),
    )


def cycle_to_dict(cycle: Cycle) -> dict[str, Any]:
    """Convert Cycle to JSON-compatible dict."""
    return _drop_none({
        "id": cycle.id,
        "name": cycle.name,
        "cycle_type": cycle.cycle_type,
        "progression_mode": cycle.progression_mode,
        "previous_cycle_id": cycle.previous_cycle_id,
        "start_date": cycle.start_date.isoformat(),
        "number_of_weeks": cycle.number_of_weeks,
        "workout_days_per_week": cycle.workout_days_per_week,
        "weekly_set_goals": cycle.weekly_set_goals,
        "groups": [
            {
                "id": g.id,
                "name": g.name,
                "exercises": [assignment_to_dict(a) for a in g.exercise_assignments],
            }
            for g in cycle.groups
        ],
        "group_rotation": list(cycle.group_rotation),
        "rfem_rotation": list(cycle.rfem_rotation),
        "conditioning_weekly_rep_increment": cycle.conditioning_weekly_rep_increment,
        "conditioning_weekly_time_increment": cycle.conditioning_weekly_time_increment,
        "include_warmup_sets": cycle.include_warmup_sets,
        "include_timed_warmups": cycle.include_timed_warmups,
        "scheduling_mode": cycle.scheduling_mode,
        "selected_days": list(cycle.selected_days) or None,
        "status": cycle.status,
        "created_at": _iso(cycle.created_at),
        "updated_at": _iso(cycle.updated_at),
    })


def dict_to_cycle(data: dict[str, Any], defaults: dict[str, Any] | None = None) -> Cycle:
    """
    Convert dict to Cycle.

    Keys absent from data are taken from defaults (the structure returned
    by load_cycle_defaults()).  Groups without an id use their name as id,
    and a missing group_rotation cycles through the groups in order.

    Args:
        data: Stored or hand-written cycle dict
        defaults: Cycle defaults with "cycle" and "conditioning" sections

    Returns:
        Cycle instance

    Raises:
        ValidationError: If data is invalid
    """
    data = _as_mapping(data, "Cycle")
    defaults = defaults or {}
    cycle_defaults = defaults.get("cycle", {})
    cond_defaults = defaults.get("conditioning", {})

    def pick(key: str, fallback: Any = None) -> Any:
        if key in data:
            return data[key]
        return cycle_defaults.get(key, fallback)

    if "name" not in data:
        raise ValidationError("Cycle needs a name")

    groups = []
    for raw in _as_list(data.get("groups", []), "groups"):
        raw = _as_mapping(raw, "Group")
        if "name" not in raw:
            raise ValidationError(f"Group needs a name: {raw!r}")
        groups.append(
            Group(
                id=str(raw.get("id", raw["name"])),
                name=str(raw["name"]),
                exercise_assignments=[
                    dict_to_assignment(a) for a in _as_list(raw.get("exercises", []), "Group exercises")
                ],
            )
        )

    weekly_set_goals = data.get("weekly_set_goals")
    if weekly_set_goals is not None:
        weekly_set_goals = _as_mapping(weekly_set_goals, "weekly_set_goals")

    start = data.get("start_date")
    now = datetime.now()

    try:
        fields = dict(
            number_of_weeks=int(pick("number_of_weeks", 4)),
            workout_days_per_week=int(pick("workout_days_per_week", 3)),
            group_rotation=[
                str(g) for g in _as_list(data.get("group_rotation", [g.id for g in groups]), "group_rotation")
            ],
            rfem_rotation=[int(v) for v in _as_list(pick("rfem_rotation", []), "rfem_rotation")],
            conditioning_weekly_rep_increment=int(
                data.get("conditioning_weekly_rep_increment", cond_defaults.get("weekly_rep_increment", 2))
            ),
            conditioning_weekly_time_increment=int(
                data.get("conditioning_weekly_time_increment", cond_defaults.get("weekly_time_increment", 5))
            ),
            selected_days=[int(d) for d in _as_list(data.get("selected_days", []), "selected_days")],
        )
    except ValidationError:
        raise
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid Cycle: {e}") from e

    return _build(
        Cycle,
        id=str(data.get("id") or new_id()),
        name=str(data["name"]),
        start_date=validate_date(start) if start is not None else now.date(),
        groups=groups,
        cycle_type=data.get("cycle_type", "training"),
        progression_mode=pick("progression_mode", "rfem"),
        weekly_set_goals=weekly_set_goals,
        include_warmup_sets=bool(pick("include_warmup_sets", True)),
        include_timed_warmups=bool(pick("include_timed_warmups", True)),
        scheduling_mode=pick("scheduling_mode", "sequence"),
        previous_cycle_id=data.get("previous_cycle_id"),
        status=data.get("status", "planning"),
        created_at=_parse_datetime(data.get("created_at")) or now,
        updated_at=_parse_datetime(data.get("updated_at")) or now,
        **fields,
    )


# ---------------------------------------------------------------------------
# Scheduled workouts
# ---------------------------------------------------------------------------


def detail_to_dict(detail: SetDetail) -> dict[str, Any]:
    """Serialize a set detail variant, tagged by "kind"."""
    if isinstance(detail, WarmupDetail):
        return {"kind": "warmup", "percentage": detail.percentage, "previous_max": detail.previous_max}
    if isinstance(detail, RfemDetail):
        return {"kind": "rfem", "rfem_value": detail.rfem_value}
    if isinstance(detail, SimpleDetail):
        return _drop_none({
            "kind": "simple",
            "value": _progression_to_dict(detail.value),
            "weight": _progression_to_dict(detail.weight),
            "week_number": detail.week_number,
            "occurrence_index": detail.occurrence_index,
        })
    if isinstance(detail, ConditioningDetail):
        return _drop_none({
            "kind": "conditioning",
            "week_number": detail.week_number,
            "base_override": detail.base_override,
            "increment_override": detail.increment_override,
        })
    if isinstance(detail, MaxTestDetail):
        return _drop_none({"kind": "max_test", "previous_max": detail.previous_max})
    raise ValidationError(f"Unknown set detail: {type(detail).__name__}")


def dict_to_detail(data: dict[str, Any]) -> SetDetail:
    """
    Convert a tagged dict back to its set detail variant.

    Raises:
        ValidationError: If the kind is unknown or fields are missing
    """
    kind = data.get("kind")
    try:
        if kind == "warmup":
            return WarmupDetail(percentage=int(data["percentage"]), previous_max=data["previous_max"])
        if kind == "rfem":
            return RfemDetail(rfem_value=int(data["rfem_value"]))
        if kind == "simple":
            return SimpleDetail(
                value=_dict_to_progression(data.get("value", {})),
                weight=_dict_to_progression(data.get("weight")),
                week_number=int(data["week_number"]),
                occurrence_index=int(data["occurrence_index"]),
            )
        if kind == "conditioning":
            return ConditioningDetail(
                week_number=int(data["week_number"]),
                base_override=data.get("base_override"),
                increment_override=data.get("increment_override"),
            )
        if kind == "max_test":
            return MaxTestDetail(previous_max=data.get("previous_max"))
    except KeyError as e:
        raise ValidationError(f"Set detail {kind!r} missing field {e}") from e
    raise ValidationError(f"Unknown set detail kind: {kind!r}")


def scheduled_set_to_dict(s: ScheduledSet) -> dict[str, Any]:
    """Convert ScheduledSet to JSON-compatible dict."""
    return {
        "id": s.id,
        "exercise_id": s.exercise_id,
        "exercise_type": s.exercise_type,
        "measurement_type": s.measurement_type,
        "set_number": s.set_number,
        "detail": detail_to_dict(s.detail),
    }


def dict_to_scheduled_set(data: dict[str, Any]) -> ScheduledSet:
    """Convert dict to ScheduledSet."""
    return _build(
        ScheduledSet,
        id=data.get("id") or new_id(),
        exercise_id=str(data["exercise_id"]),
        exercise_type=data["exercise_type"],
        measurement_type=data.get("measurement_type", "reps"),
        set_number=int(data["set_number"]),
        detail=dict_to_detail(data["detail"]),
    )


def workout_to_dict(w: ScheduledWorkout) -> dict[str, Any]:
    """Convert ScheduledWorkout to JSON-compatible dict."""
    return _drop_none({
        "id": w.id,
        "cycle_id": w.cycle_id,
        "sequence_number": w.sequence_number,
        "week_number": w.week_number,
        "day_in_week": w.day_in_week,
        "group_id": w.group_id,
        "rfem": w.rfem,
        "scheduled_sets": [scheduled_set_to_dict(s) for s in w.scheduled_sets],
        "status": w.status,
        "completed_at": _iso(w.completed_at),
        "is_ad_hoc": w.is_ad_hoc or None,
        "custom_name": w.custom_name,
        "scheduled_date": _iso(w.scheduled_date),
        "skip_reason": w.skip_reason,
    })


def dict_to_workout(data: dict[str, Any]) -> ScheduledWorkout:
    """
    Convert dict to ScheduledWorkout.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        sets = [dict_to_scheduled_set(s) for s in data.get("scheduled_sets", [])]
        scheduled = data.get("scheduled_date")
        return _build(
            ScheduledWorkout,
            id=data.get("id") or new_id(),
            cycle_id=str(data["cycle_id"]),
            sequence_number=int(data["sequence_number"]),
            week_number=int(data["week_number"]),
            day_in_week=int(data["day_in_week"]),
            group_id=str(data["group_id"]),
            rfem=int(data["rfem"]),
            scheduled_sets=sets,
            status=data.get("status", "pending"),
            completed_at=_parse_datetime(data.get("completed_at")),
            is_ad_hoc=bool(data.get("is_ad_hoc", False)),
            custom_name=data.get("custom_name"),
            scheduled_date=validate_date(scheduled) if scheduled else None,
            skip_reason=data.get("skip_reason"),
        )
    except KeyError as e:
        raise ValidationError(f"Workout missing field {e}") from e


def to_json_line(data: dict[str, Any]) -> str:
    """Serialize a dict as one compact JSON line."""
    return json.dumps(data, separators=(",", ":"))
