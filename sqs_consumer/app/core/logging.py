"""Loguru sink setup for the consumer process."""
from __future__ import annotations

import sys

from loguru import logger


def configure_logging(level: str = "INFO", *, serialize: bool = False) -> int:
    """Replace loguru's default sink with a single stderr sink. Returns the sink id."""
    logger.remove()
    return logger.add(
        sys.stderr,
        level=level.upper(),
        serialize=serialize,
        backtrace=False,
        diagnose=False,
    )
