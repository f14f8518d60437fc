"""Logging configuration for suitesorter.

Every module logs through ``logging.getLogger(__name__)``; this sets up the
``suitesorter`` parent logger from the CLI callback. Calling it again
replaces the handlers installed by the previous call.
"""

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional


class UTCFormatter(logging.Formatter):
    """Logging formatter that uses UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(timespec="milliseconds")


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    logger_name: str = "suitesorter",
) -> logging.Logger:
    """Set up logging for suitesorter.

    Args:
        log_level: DEBUG, INFO, WARNING, ... If None, uses SUITESORTER_LOG_LEVEL
                  or defaults to WARNING.
        log_file: Extra log file. If None, uses SUITESORTER_LOG_FILE if set.
        logger_name: Name of the logger to configure.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    if log_level is None:
        log_level = os.environ.get("SUITESORTER_LOG_LEVEL", "WARNING")
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING
    logger.setLevel(numeric_level)

    # Each call replaces the handlers of the previous one
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = UTCFormatter("%(asctime)s [UTC] - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is None:
        log_file = os.environ.get("SUITESORTER_LOG_FILE")
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning("Could not create log file at %s: %s", log_file, e)

    return logger
