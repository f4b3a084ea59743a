"""
Contextual logging for HUNT_STORE.

Every registry operation runs inside ``operation_context``, which binds a
correlation ID and the document being handled to the current task. Loggers
from ``get_logger`` copy both onto each record they emit, so the lines of
one load (including its detached write-back, which inherits the task
context) can be grouped by ``record.correlation_id``.
"""

import contextvars
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "hunt_store_correlation_id", default=None
)
_document_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "hunt_store_document_context", default=None
)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Bind a correlation ID to the current context.

    Callers that want several operations grouped (a request handler, an
    audit run) set one up front; ``operation_context`` then reuses it.

    Returns:
        The bound ID (a new UUID4 when ``correlation_id`` is None)
    """
    correlation_id = correlation_id or uuid.uuid4().hex
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    _correlation_id.set(None)


def get_document_context() -> dict[str, Any]:
    return dict(_document_context.get() or {})


@contextmanager
def operation_context(
    document_kind: str, document_key: str, **extra: Any
) -> Iterator[str]:
    """
    Scope one operation on one document.

    Reuses the caller's correlation ID or binds a fresh one, and sets the
    document context. Both are restored when the block exits.

    Args:
        document_kind: "appData" or "orgData"
        document_key: Storage key of the document
        **extra: Further fields for every record (org_slug, ...)

    Yields:
        The correlation ID in effect
    """
    correlation_id = _correlation_id.get() or uuid.uuid4().hex
    id_token = _correlation_id.set(correlation_id)
    document_token = _document_context.set(
        {"document_kind": document_kind, "document_key": document_key, **extra}
    )
    try:
        yield correlation_id
    finally:
        _document_context.reset(document_token)
        _correlation_id.reset(id_token)


def get_logging_context() -> dict[str, Any]:
    """Fields the contextual logger adds to a record."""
    context: dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat()}
    correlation_id = _correlation_id.get()
    if correlation_id:
        context["correlation_id"] = correlation_id
    context.update(get_document_context())
    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Adds the current correlation ID and document context to records."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**get_logging_context(), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Emit one structured record for a completed operation.

    Args:
        logger: Logger or adapter to emit through
        operation: Dotted operation name ("registry.write_back")
        level: Log level
        success: Whether the operation succeeded
        duration_ms: Duration, rounded to 2 decimals on the record
        **context: Extra record fields
    """
    fields: dict[str, Any] = {
        **get_logging_context(),
        "operation": operation,
        "success": success,
        **context,
    }
    message = f"Operation: {operation}" if success else f"Operation failed: {operation}"
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 2)
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=fields)
