"""Structured logging for the API and the Celery worker, built on structlog.

Every entry carries whatever correlation context is active:
- request_id, path, method: set by RequestIDMiddleware for each HTTP request
- user_id: the authenticated viewer, once the auth middleware has run
- task_name, task_id: set for the duration of a Celery task

Values under sensitive keys (tokens, authorization headers, secrets) are
masked before rendering.

Usage:
    from zenvi.logging import get_logger

    logger = get_logger(__name__)
    logger.info("post_created", post_id=str(post.id))
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
path_var: ContextVar[str | None] = ContextVar("path", default=None)
method_var: ContextVar[str | None] = ContextVar("method", default=None)
task_name_var: ContextVar[str | None] = ContextVar("task_name", default=None)
task_id_var: ContextVar[str | None] = ContextVar("task_id", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "request_id": request_id_var,
    "user_id": user_id_var,
    "path": path_var,
    "method": method_var,
    "task_name": task_name_var,
    "task_id": task_id_var,
}

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"authorization", "token", "access_token", "secret", "password"})

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "celery.app.trace", "httpx")


def add_correlation_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Copy every set correlation field into the event (explicit kwargs win)."""
    for key, var in _CONTEXT_VARS.items():
        value = var.get()
        if value and key not in event_dict:
            event_dict[key] = value
    return event_dict


def redact_sensitive_fields(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    for key in event_dict.keys() & SENSITIVE_KEYS:
        event_dict[key] = REDACTED
    return event_dict


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Route structlog and stdlib logging through one formatter on stdout.

    Args:
        json_format: Render JSON lines (production) instead of console output.
        level: Root log level name.
    """
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_context,
        redact_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = (
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# =============================================================================
# Request context
# =============================================================================


def set_request_context(
    request_id: str | None,
    user_id: str | None = None,
    path: str | None = None,
    method: str | None = None,
) -> None:
    """Set correlation fields for the current request.

    request_id is always replaced; the other fields only when given.
    """
    request_id_var.set(request_id)
    if user_id is not None:
        user_id_var.set(user_id)
    if path is not None:
        path_var.set(path)
    if method is not None:
        method_var.set(method)


def clear_request_context() -> None:
    for var in (request_id_var, user_id_var, path_var, method_var):
        var.set(None)


def get_request_id() -> str | None:
    return request_id_var.get()


# =============================================================================
# Task context
# =============================================================================


@contextmanager
def task_logging_context(
    task_name: str, task_id: str | None = None, request_id: str | None = None
) -> Iterator[None]:
    """Tag every entry logged inside the block with the task's correlation fields.

    Usage:
        with task_logging_context("reconcile_like_counts", self.request.id, request_id):
            ...
    """
    tokens = [
        (request_id_var, request_id_var.set(request_id)),
        (task_name_var, task_name_var.set(task_name)),
        (task_id_var, task_id_var.set(task_id)),
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
