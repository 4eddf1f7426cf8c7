"""Logging configuration for applications embedding the stats engine."""

from __future__ import annotations

import logging
import os
from typing import Iterable

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
LEVEL_ENV_VAR = "ENTITY_STATS_LOG_LEVEL"


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    extra_loggers: Iterable[str] | None = None,
) -> logging.Logger:
    """Configure logging for the ``entity_stats`` package.

    Args:
        level: Optional explicit log level. Falls back to the
            ``ENTITY_STATS_LOG_LEVEL`` env var, then WARNING.
        format: Log format string.
        datefmt: Date format string.
        extra_loggers: Additional logger names to align with the configured level.

    Returns:
        The package logger (``entity_stats``).
    """

    raw_level = level if level is not None else os.getenv(LEVEL_ENV_VAR)
    resolved_level = (raw_level or "WARNING").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    package_logger = logging.getLogger("entity_stats")
    package_logger.setLevel(resolved_level)

    if extra_loggers:
        for logger_name in extra_loggers:
            logging.getLogger(logger_name).setLevel(resolved_level)

    package_logger.debug("Logging configured", extra={"level": resolved_level})
    return package_logger
