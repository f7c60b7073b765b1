"""Structured logging configuration for foundry-relay."""

from __future__ import annotations

import logging

import structlog


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure structlog for the relay.

    At DEBUG level every chunk forwarded to a channel is logged.
    At INFO level and above, only turn-level events are logged.

    Args:
        level: Standard logging level (e.g., logging.DEBUG) or its name.
    """
    if isinstance(level, str):
        level = _LEVELS.get(level.lower(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

