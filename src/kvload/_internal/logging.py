"""Logging setup for kvload.

Worker loops run on their own threads, so both formats carry the thread
name (``kvload-worker-3``) alongside the logger name.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

_ROOT_LOGGER = "kvload"
_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(threadName)s %(name)s: %(message)s"


class _JsonFormatter(logging.Formatter):
    """One-line JSON formatter.

    Keys: timestamp, level, logger, thread, message (and exception when
    the record carries one).
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the ``kvload`` root logger.

    Repeated calls only adjust the level of the existing handler, so
    the runner and the CLI can both call this safely.

    Args:
        level: Logging level (e.g. ``logging.DEBUG``).
        json_format: Emit one JSON object per line instead of text.

    Returns:
        The configured ``kvload`` logger.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    # Keep records out of the root logger to avoid duplicate output
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, e.g. ``get_logger("engine.worker")``."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")
