"""Logging setup for the command line."""

from __future__ import annotations

import logging


def configure_logging(verbosity: int = 0, name: str = "rank_sts") -> logging.Logger:
    """Attach a stderr handler to the package logger.

    0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING if verbosity <= 0 else logging.INFO if verbosity == 1 else logging.DEBUG
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
