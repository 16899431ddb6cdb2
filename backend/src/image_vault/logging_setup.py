"""Logging configuration for command-line entry points."""

from __future__ import annotations

import logging

from rich.logging import RichHandler


def configure_logging(verbose: bool = False) -> None:
    """Route log records through rich; DEBUG when verbose, else WARNING."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=False)],
        force=True,
    )
    # SQL echo stays off unless explicitly debugging the engine
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
