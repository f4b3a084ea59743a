"""
Custom exceptions for HUNT_STORE.

These exceptions provide more specific error types while maintaining
backward compatibility with RuntimeError.
"""

from typing import Any, Dict, List, Optional


class HuntStoreError(RuntimeError):
    """
    Base exception for HUNT_STORE errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (document_key,
                 document_kind, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(HuntStoreError):
    """
    Raised when configuration is invalid or missing.

    This covers both environment configuration and schema system setup
    (registering into a frozen registry, broken migration chains).

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class DocumentValidationError(HuntStoreError):
    """
    Raised when a document fails validation on a path that must not degrade.

    Strict upserts and org loads raise this; the structured errors stay
    available so callers can render field-level messages.

    Attributes:
        message: Error message
        errors: Structured validation errors (code, message, path, suggestion)
        error_paths: Dotted paths of the failing fields
        document_kind: Kind of the document ("appData", "orgData")
        schema_version: Schema version used for validation (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[Any]] = None,
        document_kind: Optional[str] = None,
        schema_version: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        self.errors = list(errors or [])
        self.error_paths = [
            ".".join(error.path) if error.path else "root" for error in self.errors
        ]
        if self.error_paths:
            context["error_paths"] = self.error_paths
        if document_kind:
            context["document_kind"] = document_kind
        if schema_version:
            context["schema_version"] = schema_version
        super().__init__(message, context=context)
        self.document_kind = document_kind
        self.schema_version = schema_version

    @property
    def error_codes(self) -> List[str]:
        """Codes of the structured errors, in order."""
        return [error.code for error in self.errors]


class StoreError(HuntStoreError):
    """
    Base class for document store (backend) errors.

    Attributes:
        message: Error message
        key: Storage key involved (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if key:
            context["key"] = key
        super().__init__(message, context=context)
        self.key = key


class DocumentNotFoundError(StoreError):
    """Raised when a conditional write or a required read targets a missing key."""


class ConcurrencyConflictError(StoreError):
    """
    Raised when a conditional write loses the etag comparison.

    Callers must reload the document, reapply their change and retry.

    Attributes:
        expected_etag: Etag the caller expected
        current_etag: Etag currently stored (if known)
    """

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        expected_etag: Optional[str] = None,
        current_etag: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if expected_etag:
            context["expected_etag"] = expected_etag
        if current_etag:
            context["current_etag"] = current_etag
        super().__init__(message, key=key, context=context)
        self.expected_etag = expected_etag
        self.current_etag = current_etag
