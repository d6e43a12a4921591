"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..io.store import PlannerStore, get_default_data_dir

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Data directory (default: ~/.cycle-scheduler)"),
]

app = typer.Typer(
    name="cycle-scheduler",
    help="Training cycle scheduler: rotations, RFEM progression and max testing.",
    no_args_is_help=True,
)


def get_store(data_dir: Path | None) -> PlannerStore:
    """Get store from path or the default location."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    return PlannerStore(data_dir)
