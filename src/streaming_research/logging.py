"""Structured logging configuration for the streaming research agent."""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: If True, output JSON logs; otherwise, use colored console output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # run_id and query_preview are bound per worker thread via contextvars
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=[*shared_processors, *renderers],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name (typically the component area).

    Returns:
        A configured structured logger.
    """
    return structlog.get_logger(name)


def preview(text: str, limit: int = 80) -> str:
    """Shorten text for log fields."""
    return text[:limit] + "..." if len(text) > limit else text


@contextmanager
def bind_run_context(run_id: str, query: str):
    """Bind run identifiers to every log line emitted on the current thread.

    Args:
        run_id: Identifier of the research run.
        query: The original research query.
    """
    structlog.contextvars.bind_contextvars(run_id=run_id, query_preview=preview(query, 60))
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars("run_id", "query_preview")


@contextmanager
def log_duration(logger: Any, event: str, **extra_fields):
    """Context manager to log the duration of an operation.

    Args:
        logger: The logger instance to use.
        event: The event name to log.
        **extra_fields: Additional fields to include in the log.

    Yields:
        A dict that can be updated with additional fields before the end log.
    """
    start_time = time.perf_counter()
    logger.debug(event, status="started", **extra_fields)

    result_fields: dict = {}
    try:
        yield result_fields
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            event,
            status="completed",
            duration_ms=round(duration_ms, 2),
            **extra_fields,
            **result_fields,
        )
    except Exception as e:
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.warning(
            event,
            status="failed",
            duration_ms=round(duration_ms, 2),
            error=str(e),
            error_type=type(e).__name__,
            **extra_fields,
        )
        raise
