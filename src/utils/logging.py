"""Logging configuration for the NCAA Matchup Models.

This module provides structured logging setup using structlog, with support for
both console and file logging, and configurable log levels and formats. Python
warnings (statsmodels convergence and separation warnings in particular) are
routed through the logging system so they land in the same sinks.
"""

import logging
import sys
from pathlib import Path

import structlog
from structlog.stdlib import LoggerFactory


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    log_file: str | None = None,
    capture_warnings: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output logs in JSON format
        log_file: Optional path to log file
        capture_warnings: Whether to redirect ``warnings`` output to logging
    """
    level = getattr(logging, log_level.upper())

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)
    logging.captureWarnings(capture_warnings)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
