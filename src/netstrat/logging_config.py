"""
Logging Configuration
=====================
Opt-in handlers for the 'netstrat' logger namespace.

Why is this file needed?
------------------------
1. Library default: the package only attaches a NullHandler on import, so
   embedding applications see no output unless they ask for it.
2. Convenience: setup_logging() attaches a console handler and an optional
   file handler with one shared format, replacing handlers from earlier
   calls instead of stacking them.

Functions:
    setup_logging: Configure and return the 'netstrat' logger.
"""
import logging
import sys
from typing import IO, List, Optional

from netstrat.config import LOG_DATEFMT, LOG_FORMAT, LOGGER_NAME


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    Attaches handlers to the package logger.

    Args:
        level: Threshold for the logger and its handlers.
        log_file: Optional path; the file is truncated on each call.
        stream: Console stream, stdout when omitted.

    Returns:
        The configured 'netstrat' logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    _drop_handlers(logger)
    logger.setLevel(level)

    handlers: List[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(f"netstrat logging configured; level: {logging.getLevelName(level)}; file: {log_file}")
    return logger
