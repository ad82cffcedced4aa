"""Logging setup for the ``highscores`` logger namespace."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from highscores.config import settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "highscores-stdout"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stdout handler to the package logger.

    Safe to call more than once: the handler is only added the first time,
    later calls adjust the level and rebind the handler to the current
    ``sys.stdout``.

    Args:
        level: Log level name (``DEBUG``, ``INFO`` …).  Defaults to
            ``settings.log_level``.

    Returns:
        The ``highscores`` package logger.
    """
    logger = logging.getLogger("highscores")
    logger.setLevel(getattr(logging, (level or settings.log_level).upper(), logging.INFO))

    for handler in logger.handlers:
        if handler.get_name() == _HANDLER_NAME and isinstance(handler, logging.StreamHandler):
            handler.setStream(sys.stdout)
            return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
