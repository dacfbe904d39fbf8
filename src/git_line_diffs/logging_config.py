"""Logging setup for the git-line-diffs CLI."""
from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_LEVEL_ENV = "GIT_LINE_DIFFS_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def resolve_log_level(*candidates: str | None) -> int:
    """First non-empty candidate wins, then the env var, then WARNING."""
    for name in (*candidates, os.environ.get(LOG_LEVEL_ENV), DEFAULT_LOG_LEVEL):
        if not name:
            continue
        level = logging.getLevelName(str(name).strip().upper())
        if isinstance(level, int):
            return level
    return logging.WARNING


def setup_logging(*candidates: str | None) -> None:
    # Diagnostics go to stderr; stdout is reserved for the report itself.
    logging.basicConfig(
        level=resolve_log_level(*candidates),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
