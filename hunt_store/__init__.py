"""
HUNT_STORE - Versioned document store for scavenger hunts

Schema-versioned App Registry and Organization documents with automatic
migration, validation and etag-based optimistic concurrency.
"""

# Configuration and errors
from .config import StoreConfig
from .exceptions import (ConcurrencyConflictError, ConfigurationError,
                         DocumentNotFoundError, DocumentValidationError,
                         HuntStoreError, StoreError)
# Registry façade
from .registry import LoadedDocument, RegistryService
# Schema system
from .schemas import (SchemaSystem, ValidationOptions, ValidationResult,
                      create_schema_system)
# Storage backends
from .storage import DocumentStore, InMemoryDocumentStore, MongoDocumentStore

__version__ = "0.1.0"

__all__ = [
    # Schemas
    "SchemaSystem",
    "create_schema_system",
    "ValidationOptions",
    "ValidationResult",
    # Registry
    "RegistryService",
    "LoadedDocument",
    # Storage
    "DocumentStore",
    "InMemoryDocumentStore",
    "MongoDocumentStore",
    # Config
    "StoreConfig",
    # Errors
    "HuntStoreError",
    "ConfigurationError",
    "DocumentValidationError",
    "StoreError",
    "DocumentNotFoundError",
    "ConcurrencyConflictError",
]
