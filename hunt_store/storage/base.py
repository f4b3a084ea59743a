"""
Abstract Document Store

Defines the key/value backend contract the registry service relies on:
read with etag, conditional write, and prefix listing. Any store offering
these three operations can back the registry.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..exceptions import ConcurrencyConflictError, DocumentNotFoundError

logger = logging.getLogger(__name__)


def new_etag() -> str:
    """Generate a fresh opaque etag."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class StoredDocument:
    """A stored value together with the etag observed when it was read."""

    key: str
    body: bytes
    etag: str


class DocumentStore(ABC):
    """
    Abstract key/value document store with optimistic concurrency.

    A missing key on ``get`` is an expected outcome and comes back as None;
    conditional writes raise ``ConcurrencyConflictError`` when the stored
    etag moved and ``DocumentNotFoundError`` when the key disappeared.

    Example:
        stored = await store.get("app.json")
        if stored is not None:
            etag = await store.put("app.json", new_body, expected_etag=stored.etag)
    """

    @abstractmethod
    async def get(self, key: str) -> StoredDocument | None:
        """
        Read a document.

        Args:
            key: Document key

        Returns:
            StoredDocument if found, None otherwise
        """
        pass

    @abstractmethod
    async def put(
        self,
        key: str,
        body: bytes,
        expected_etag: str | None = None,
        create_only: bool = False,
    ) -> str:
        """
        Write a document.

        Args:
            key: Document key
            body: Serialized document
            expected_etag: When given, the write only succeeds if the stored
                etag still equals it
            create_only: When True (and no expected_etag), the write only
                succeeds if the key does not exist yet

        Returns:
            The new etag

        Raises:
            ConcurrencyConflictError: If the stored etag differs from expected_etag,
                or a create_only write finds the key already present
            DocumentNotFoundError: If expected_etag is given and the key is missing
        """
        pass

    @abstractmethod
    async def list(self, prefix: str = "") -> list[str]:
        """
        List keys starting with a prefix.

        Args:
            prefix: Key prefix ("" lists everything)

        Returns:
            Sorted list of matching keys
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a document (backend maintenance only).

        Args:
            key: Document key

        Returns:
            True if the document was deleted, False if not found
        """
        pass


class InMemoryDocumentStore(DocumentStore):
    """
    In-memory document store for testing and local development.

    The etag check and the write happen without an intervening await, so
    each put is an atomic compare-and-swap on the event loop.
    """

    def __init__(self) -> None:
        self._storage: dict[str, StoredDocument] = {}

    async def get(self, key: str) -> StoredDocument | None:
        return self._storage.get(key)

    async def put(
        self,
        key: str,
        body: bytes,
        expected_etag: str | None = None,
        create_only: bool = False,
    ) -> str:
        current = self._storage.get(key)
        if expected_etag is not None:
            if current is None:
                raise DocumentNotFoundError(
                    f"Cannot conditionally update missing document '{key}'", key=key
                )
            if current.etag != expected_etag:
                raise ConcurrencyConflictError(
                    f"Document '{key}' was modified concurrently",
                    key=key,
                    expected_etag=expected_etag,
                    current_etag=current.etag,
                )
        elif create_only and current is not None:
            raise ConcurrencyConflictError(
                f"Document '{key}' was created concurrently",
                key=key,
                current_etag=current.etag,
            )

        etag = new_etag()
        self._storage[key] = StoredDocument(key=key, body=bytes(body), etag=etag)
        logger.debug(f"Stored '{key}' with etag={etag}")
        return etag

    async def list(self, prefix: str = "") -> list[str]:
        return sorted(key for key in self._storage if key.startswith(prefix))

    async def delete(self, key: str) -> bool:
        if key not in self._storage:
            return False
        del self._storage[key]
        return True

    def clear(self) -> None:
        """Clear all documents (useful for test setup)."""
        self._storage.clear()
