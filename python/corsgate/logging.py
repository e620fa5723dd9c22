"""Structured logging configuration using structlog.

Provides JSON-formatted logs with consistent context including:
- path: Raw request path (never includes query string)
- method: HTTP method
- origin: Origin header of the request being evaluated
- timestamp: ISO8601 formatted timestamp

Usage:
    from corsgate.logging import get_logger, configure_logging

    # Configure once at startup
    configure_logging()

    # Get a logger for a module
    logger = get_logger(__name__)
    logger.info("something_happened", extra_field="value")
"""

import logging
import sys
from contextvars import ContextVar
from typing import TextIO

import structlog

# Context variables for request-scoped logging
path_var: ContextVar[str | None] = ContextVar("path", default=None)
method_var: ContextVar[str | None] = ContextVar("method", default=None)
origin_var: ContextVar[str | None] = ContextVar("origin", default=None)


def add_request_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Add request context to all log entries.

    Injects all non-None ContextVar values into the log event dict.
    Explicit event fields win over context values.
    """
    for key, var in (("path", path_var), ("method", method_var), ("origin", origin_var)):
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    return event_dict


HANDLER_NAME = "corsgate"


def configure_logging(
    json_format: bool = True,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib records through one structlog-formatted handler.

    Calling it again replaces the handler from the previous call. Handlers
    installed by others (uvicorn, pytest) are left alone.

    Args:
        json_format: If True, output JSON logs. If False, output console-friendly logs.
        level: Root logger level.
        stream: Output stream, stdout when None.
    """
    processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_request_context,
        structlog.processors.format_exc_info,
    ]
    renderer = structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for the given name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


def set_request_context(
    path: str | None = None,
    method: str | None = None,
    origin: str | None = None,
) -> None:
    """Set request context for the current async context."""
    path_var.set(path)
    method_var.set(method)
    origin_var.set(origin)


def clear_request_context() -> None:
    """Clear all request-scoped context at the end of a request."""
    path_var.set(None)
    method_var.set(None)
    origin_var.set(None)
