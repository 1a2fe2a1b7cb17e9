"""Process-wide logging setup.

Everything uses the standard :mod:`logging` library. Modules obtain their
logger with ``logging.getLogger(__name__)``; :func:`configure_logging` attaches
a single console handler to the ``taskmanager_app`` logger tree.
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "taskmanager_app"
_CONFIGURED_FLAG = "_taskmanager_configured"
_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure the application logger tree; safe to call more than once."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    if getattr(logger, _CONFIGURED_FLAG, False):
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    setattr(logger, _CONFIGURED_FLAG, True)
    return logger
