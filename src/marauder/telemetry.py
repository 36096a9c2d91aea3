"""Logging entry points.

Log records go to stderr only: a launched language server owns stdout.
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "[%(name)s] %(message)s"
_HANDLER_NAME = "marauder.stderr"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a single stderr handler to the ``marauder`` logger.

    Safe to call repeatedly; the level is updated and no second handler is
    added.
    """
    root = logging.getLogger("marauder")
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    root.setLevel(resolved)
    if not any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)
    return root
