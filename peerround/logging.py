"""Structured logging configuration for peerround.

Two sinks are supported:
- JSON lines for services that persist assignments
- Rich console output for the simulation CLI

Library code only calls `get_logger`. Request-scoped context such as the
activity id and round number is bound with `structlog.contextvars` by the
round engine, so loggers in the clustering, pairing and assignment modules
pick it up without being passed around.
"""

import logging
import os

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import (
    JSONRenderer,
    StackInfoRenderer,
    TimeStamper,
    add_log_level,
    format_exc_info,
)

LOG_LEVEL_ENV = "PEERROUND_LOG_LEVEL"


def resolve_log_level(log_level: str | None = None) -> int:
    """Turn a level name into a `logging` constant.

    Args:
        log_level: Level name such as "DEBUG" or "warning". When None,
                   PEERROUND_LOG_LEVEL is read from the environment.

    Returns:
        The numeric level, INFO for unknown names
    """
    name = log_level or os.environ.get(LOG_LEVEL_ENV, "INFO")
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(cli_mode: bool = False, log_level: str | None = None) -> None:
    """Configure structlog for the process.

    Args:
        cli_mode: Render with the Rich console renderer instead of JSON
        log_level: Minimum level to emit (defaults to PEERROUND_LOG_LEVEL, then INFO)
    """
    processors = [
        merge_contextvars,
        add_log_level,
        TimeStamper(fmt="iso"),
        StackInfoRenderer(),
        format_exc_info,
    ]

    if cli_mode:
        from structlog.dev import ConsoleRenderer
        processors.append(ConsoleRenderer(colors=True))
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return a structlog logger, named after the calling module when given."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
