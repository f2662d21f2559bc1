"""
Sorta Structured Logging Module.

Provides consistent, structured logging throughout the watcher.
Requires Python 3.11+.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from utils.config import get_settings


def _add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add application context to all log entries."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


def configure_logging(level: str | None = None, json_format: bool | None = None) -> None:
    """
    Configure structured logging for the application.

    Call this once at application startup. Log lines go to stderr so that
    command-line output on stdout stays machine readable.

    Args:
        level: Override for LOG_LEVEL (e.g. "DEBUG")
        json_format: Override for LOG_FORMAT; True renders JSON lines
    """
    settings = get_settings()
    level_name = (level or settings.logging.level).upper()
    if json_format is None:
        json_format = settings.logging.format == "json"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_app_context,
    ]

    if json_format:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
    )

    # watchdog logs every inotify hiccup at INFO
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, typically named after the calling module."""
    return structlog.get_logger(name)


# Pre-configured logger for quick imports
logger = get_logger("sorta")


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Usage:
        class Debouncer(LoggerMixin):
            def add(self, path):
                self.log.debug("debounce_armed", path=path)
    """

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        """Get logger bound to this class name."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
