"""
Observability components.

Provides structured logging with document context and operation metrics.
"""

from .logging import (
    ContextualLoggerAdapter,
    clear_correlation_id,
    get_correlation_id,
    get_document_context,
    get_logger,
    get_logging_context,
    log_operation,
    operation_context,
    set_correlation_id,
)
from .metrics import MetricsCollector, OperationMetrics

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    # Logging
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_document_context",
    "operation_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "log_operation",
]
