"""structlog configuration shared by every module.

Call :func:`setup_logging` once at process start-up, then obtain loggers with
:func:`get_logger` and log snake_case event names with keyword context::

    logger = get_logger("engine.executor")
    logger.info("task_complete", task_id=task.id, duration=0.42)
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(debug: bool = False) -> None:
    """Configure structlog and the stdlib root logger.

    Debug mode renders coloured console output; otherwise each event is
    emitted as a single JSON line.
    """
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if debug
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a structlog logger bound to *name*."""
    if name:
        return structlog.get_logger().bind(logger=name)
    return structlog.get_logger()
