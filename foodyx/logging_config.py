"""Logging setup shared by the storefront client."""
from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("foodyx")


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """Configure the ``foodyx`` logger hierarchy once.

    Level comes from the argument, then ``LOG_LEVEL``, then INFO.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def mask_token(token: str | None) -> str:
    """Shorten a bearer token for log output."""
    if not token:
        return "<none>"
    return token[:10] + "..."
