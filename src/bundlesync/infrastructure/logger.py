"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import os
import sys

import structlog

_LEVEL_ALIASES = {"warn": "warning"}


def _level_number(level: str) -> int:
    name = _LEVEL_ALIASES.get(level.lower(), level.lower())
    return getattr(logging, name.upper(), logging.INFO)


def configure_logging(level: str | None = None) -> None:
    """Configure structlog console output at the given level (default: $LOG_LEVEL or info)."""
    if level is None:
        level = os.environ.get("LOG_LEVEL", "info")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # Level is reconfigured once settings are loaded
        cache_logger_on_first_use=False,
    )


configure_logging()

logger: structlog.typing.FilteringBoundLogger = structlog.get_logger()


def install_exception_hooks() -> None:
    """Route uncaught exceptions through structlog."""

    def handle_exception(exc_type, exc_value, exc_traceback):  # type: ignore[no-untyped-def]
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception


install_exception_hooks()
