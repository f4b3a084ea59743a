"""
HUNT_STORE Document Stores

Key/value backends with optimistic concurrency for the registry service.

Usage:
    from hunt_store.storage import InMemoryDocumentStore, MongoDocumentStore

    store = InMemoryDocumentStore()
    etag = await store.put("app.json", body)
    stored = await store.get("app.json")
"""

from .base import DocumentStore, InMemoryDocumentStore, StoredDocument, new_etag
from .mongo import MongoDocumentStore

__all__ = [
    "DocumentStore",
    "StoredDocument",
    "InMemoryDocumentStore",
    "MongoDocumentStore",
    "new_etag",
]
