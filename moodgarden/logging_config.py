"""Structured logging for the leaderboard service.

Every line carries ``service``. Lines emitted while serving a request also
carry ``request_id`` and ``path`` and, once the query is parsed, the board
being built (``category``, ``period``, ``viewer_id``).
"""

import logging
import sys

import structlog

# Bound per request and dropped again by clear_request_context()
REQUEST_CONTEXT_KEYS = ("request_id", "path", "category", "period", "viewer_id")

# Library loggers that are chatty at INFO
_QUIET_LOGGERS = ("sqlalchemy.engine", "asyncio", "httpx")


def _renderer(json_format: bool) -> list[structlog.types.Processor]:
    if json_format:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=True)]


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: str = "moodgarden-leaderboard",
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON lines for production, colored console output otherwise
        service_name: Bound as ``service`` on every log line
    """
    log_level = getattr(logging, level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_renderer(json_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_request_context(request_id: str, path: str) -> None:
    structlog.contextvars.bind_contextvars(request_id=request_id, path=path)


def bind_leaderboard_context(category: str, period: str, viewer_id: int | None = None) -> None:
    """Tag the rest of the request's log lines with the board being built."""
    context: dict[str, object] = {"category": category, "period": period}
    if viewer_id is not None:
        context["viewer_id"] = viewer_id
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context() -> None:
    """Drop per-request fields, keeping the ``service`` binding."""
    structlog.contextvars.unbind_contextvars(*REQUEST_CONTEXT_KEYS)
