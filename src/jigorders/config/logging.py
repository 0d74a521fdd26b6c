"""Logging setup for the jigorders command line."""

from __future__ import annotations

import logging

# Libraries whose INFO output drowns per-order logging unless debugging.
QUIET_LOGGERS = ("alembic", "sqlalchemy.engine", "sqlalchemy.pool")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger for CLI runs.

    Migration and engine chatter is held at WARNING unless ``level`` is DEBUG.
    Pass ``force=True`` to reconfigure in tests.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
