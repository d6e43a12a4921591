"""
CLI entry point using Typer.

Provides commands for cycle management:
- init: Initialize the data directory
- add-exercise / list-exercises: Manage exercise definitions
- log-max: Record a new max
- create-cycle / activate / status: Manage training cycles
- schedule / mark / regenerate / dedupe: Work with scheduled workouts
- max-test: Plan a max-testing cycle
"""

from .app import app
from .commands import cycles, exercises, workouts  # noqa: F401  (registers commands)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
