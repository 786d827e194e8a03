"""
Logging setup.

Log lines go to stderr so they never interleave with the table on stdout:

    2026-10-19 11:43:29,142 - depth_viewer.engine.pump - WARNING - Skipping frame: bad price in bids[3]: 'abc'
"""

from __future__ import annotations

import logging
import sys

LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install a single handler on the package logger.

    Defaults to stderr. Full-screen modes pass their own handler because the
    screen is drawn on stderr too.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError("unknown log level")

    logger = logging.getLogger("depth_viewer")
    logger.setLevel(level)

    # Re-configuring (e.g. from tests) must not stack handlers
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LINE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
