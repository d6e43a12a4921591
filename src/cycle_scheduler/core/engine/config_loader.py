"""
YAML → cycle defaults loader.

Loads cycle-creation defaults from defaults.yaml (bundled with the
package) and optionally merges user overrides from
~/.cycle-scheduler/defaults.yaml.

Usage:
    from cycle_scheduler.core.engine.config_loader import load_cycle_defaults
    cfg = load_cycle_defaults()
    weeks = cfg["cycle"]["number_of_weeks"]

A user file that cannot be read or parsed is ignored with a ScheduleWarning.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from ..errors import warn

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; non-mapping documents load as {}."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path:
    """Return the path to the bundled defaults.yaml."""
    # config_loader.py lives at src/cycle_scheduler/core/engine/config_loader.py
    return Path(__file__).parent.parent.parent / "defaults.yaml"


def get_user_yaml_path() -> Path | None:
    """Return ~/.cycle-scheduler/defaults.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".cycle-scheduler" / "defaults.yaml"
    return p if p.exists() else None


def load_cycle_defaults(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge cycle defaults from YAML sources.

    Load order (later overrides earlier):
    1. Bundled cycle_scheduler/defaults.yaml
    2. user_path, or ~/.cycle-scheduler/defaults.yaml when not given

    Returns:
        Merged dict with "cycle" and "conditioning" sections
    """
    config = _load_yaml_file(get_bundled_yaml_path())

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None:
        try:
            user_cfg = _load_yaml_file(user)
        except (OSError, yaml.YAMLError) as exc:
            warn(f"Ignoring user defaults {user}: {exc}")
        else:
            config = _deep_merge(config, user_cfg)

    return config
