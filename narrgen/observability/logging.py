"""Structured logging configuration.

The core modules only ever call ``get_logger(__name__)``. Front ends (the CLI,
a host service) call ``configure_logging`` at startup; until one does, the
first ``get_logger`` call installs a WARNING-level stderr setup so library
calls never write to stdout.
"""

from __future__ import annotations

import logging
import sys

import structlog

_configured = False


def configure_logging(
    level: str | int = "WARNING",
    json_output: bool = False,
    force: bool = True,
) -> None:
    """Configure stdlib logging and structlog.

    Args:
        level: Log level name or number for the root logger.
        json_output: Render events as JSON lines instead of console text.
        force: Replace existing root handlers. When False, a host that already
            configured stdlib logging keeps its handlers.
    """
    global _configured

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
        force=force,
    )

    renderer: structlog.typing.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a structured logger instance.

    Configures logging on first use if nothing has yet.

    Args:
        name: Logger name (typically __name__).
    """
    if not _configured:
        configure_logging(force=False)

    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def is_configured() -> bool:
    return _configured
