"""Logging setup shared by the HTTP app and the command-line lookup."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach a stdout handler to the root logger.

    Args:
        level: Logging level name or number (defaults to INFO).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Request-level chatter from the HTTP client drowns out source diagnostics.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
