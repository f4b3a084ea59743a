"""
Unit tests for custom exceptions.

Tests exception hierarchy and error messages.
"""

from hunt_store.exceptions import (ConcurrencyConflictError,
                                   ConfigurationError, DocumentNotFoundError,
                                   DocumentValidationError, HuntStoreError,
                                   StoreError)
from hunt_store.schemas.validation import ValidationError


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    def test_hunt_store_error_is_runtime_error(self):
        """Test that HuntStoreError is a RuntimeError."""
        assert isinstance(HuntStoreError("test error"), RuntimeError)

    def test_store_errors(self):
        """Test that both store failures can be caught as StoreError."""
        assert isinstance(DocumentNotFoundError("missing"), StoreError)
        assert isinstance(ConcurrencyConflictError("conflict"), StoreError)
        assert isinstance(StoreError("backend"), HuntStoreError)

    def test_configuration_and_validation_errors(self):
        assert isinstance(ConfigurationError("config invalid"), HuntStoreError)
        assert isinstance(DocumentValidationError("invalid"), HuntStoreError)
        assert not isinstance(DocumentValidationError("invalid"), StoreError)


class TestExceptionMessages:
    """Test exception message formatting."""

    def test_hunt_store_error_message(self):
        error = HuntStoreError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.context == {}

    def test_hunt_store_error_with_context(self):
        """Test HuntStoreError message with context."""
        error = HuntStoreError("Something went wrong", context={"document_key": "app.json"})
        assert str(error) == "Something went wrong (context: document_key=app.json)"

    def test_configuration_error(self):
        error = ConfigurationError("Bad prefix", config_key="org_key_prefix", config_value="")
        assert error.config_key == "org_key_prefix"
        assert error.config_value == ""
        assert error.context == {"config_key": "org_key_prefix", "config_value": ""}

    def test_concurrency_conflict_error(self):
        error = ConcurrencyConflictError(
            "Document modified", key="app.json", expected_etag="e1", current_etag="e2"
        )
        assert error.key == "app.json"
        assert error.expected_etag == "e1"
        assert error.current_etag == "e2"
        assert "expected_etag=e1" in str(error)
        assert "key=app.json" in str(error)

    def test_document_validation_error(self):
        """Test DocumentValidationError keeps structured errors."""
        errors = [
            ValidationError(
                code="INVALID_TYPE",
                message="Expected integer, received string",
                path=("hunts", "0", "scoring", "basePerStop"),
            ),
            ValidationError(code="MISSING", message="Field required"),
        ]
        error = DocumentValidationError(
            "orgData validation failed",
            errors=errors,
            document_kind="orgData",
            schema_version="1.2.0",
        )

        assert error.errors == errors
        assert error.error_codes == ["INVALID_TYPE", "MISSING"]
        assert error.error_paths == ["hunts.0.scoring.basePerStop", "root"]
        assert error.context["document_kind"] == "orgData"
        assert error.context["schema_version"] == "1.2.0"

    def test_document_validation_error_without_errors(self):
        error = DocumentValidationError("not JSON")
        assert error.errors == []
        assert error.error_codes == []
        assert str(error) == "not JSON"
