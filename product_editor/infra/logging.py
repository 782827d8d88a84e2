"""Structured logging configuration using structlog.

JSON logs outside development, coloured console output locally. Every
record carries the tenant, and records emitted while an editor is open
carry that editor's session id and product id.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from product_editor.config import settings


EDITOR_CONTEXT_KEYS = ("editor_session", "product_id")


def add_tenant_context(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Stamp the configured tenant on each record unless one is bound."""
    if settings.tenant_id:
        event_dict.setdefault("tenant_id", settings.tenant_id)
    return event_dict


def bind_editor_context(session_id: str, product_id: str | None = None) -> None:
    """Bind the open editor to every log record in the current context."""
    structlog.contextvars.bind_contextvars(editor_session=session_id, product_id=product_id)


def clear_editor_context() -> None:
    structlog.contextvars.unbind_contextvars(*EDITOR_CONTEXT_KEYS)


def setup_logging() -> None:
    """Configure structlog for the editor.

    Sets up:
    - JSON formatting for staging/prod
    - Console formatting for development
    - Integration with standard logging
    """
    use_json = settings.log_json and settings.environment != "dev"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_tenant_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.getLevelName(settings.log_level),
    )

    # Transport and imaging chatter
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name (usually __name__)
        **initial_context: Initial context to bind to the logger

    Returns:
        Bound structlog logger
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
