"""
MongoDB Document Store Implementation

Implements the DocumentStore interface on a motor collection. Each stored
document becomes one MongoDB document:

    {"_id": <key>, "body": <json text>, "etag": <etag>, "updatedAt": <datetime>}

Conditional writes filter on both ``_id`` and ``etag`` so the comparison and
the write are a single atomic server-side operation. Create-only writes use
``insert_one`` and rely on the unique ``_id`` index the same way.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..config import StoreConfig
from ..constants import DEFAULT_COLLECTION_NAME
from ..exceptions import (ConcurrencyConflictError, DocumentNotFoundError,
                          StoreError)
from .base import DocumentStore, StoredDocument, new_etag

logger = logging.getLogger(__name__)


class MongoDocumentStore(DocumentStore):
    """
    MongoDB implementation of the DocumentStore interface.

    Example:
        client = AsyncIOMotorClient("mongodb://localhost:27017")
        store = MongoDocumentStore(client["hunt_store"]["documents"])

        stored = await store.get("app.json")
        etag = await store.put("app.json", body, expected_etag=stored.etag)
    """

    def __init__(self, collection: Any):
        """
        Initialize the MongoDB document store.

        Args:
            collection: AsyncIOMotorCollection holding the documents
        """
        self._collection = collection

    @classmethod
    def from_config(
        cls, config: StoreConfig, client: AsyncIOMotorClient | None = None
    ) -> "MongoDocumentStore":
        """
        Build a store from configuration.

        Args:
            config: Store configuration (validated with require_mongo=True)
            client: Optional existing motor client to reuse

        Raises:
            ConfigurationError: If MongoDB settings are missing
        """
        config.validate(require_mongo=True)
        if client is None:
            client = AsyncIOMotorClient(config.mongo_uri, appname="HUNT_STORE")
        collection_name = config.collection_name or DEFAULT_COLLECTION_NAME
        return cls(client[config.db_name][collection_name])

    async def get(self, key: str) -> StoredDocument | None:
        try:
            doc = await self._collection.find_one({"_id": key})
        except PyMongoError as e:
            raise StoreError(f"Failed to read document '{key}': {e}", key=key) from e

        if doc is None:
            return None
        body = doc.get("body", "")
        if isinstance(body, str):
            body = body.encode("utf-8")
        return StoredDocument(key=key, body=bytes(body), etag=doc["etag"])

    async def put(
        self,
        key: str,
        body: bytes,
        expected_etag: str | None = None,
        create_only: bool = False,
    ) -> str:
        etag = new_etag()
        fields = {
            "body": body.decode("utf-8"),
            "etag": etag,
            "updatedAt": datetime.now(timezone.utc),
        }

        try:
            if expected_etag is None and create_only:
                # The unique _id index makes the existence check atomic
                try:
                    await self._collection.insert_one({"_id": key, **fields})
                except DuplicateKeyError:
                    current = await self._collection.find_one(
                        {"_id": key}, projection={"etag": 1}
                    )
                    raise ConcurrencyConflictError(
                        f"Document '{key}' was created concurrently",
                        key=key,
                        current_etag=current.get("etag") if current else None,
                    ) from None
                logger.debug(f"Created '{key}' with etag={etag}")
                return etag

            if expected_etag is None:
                await self._collection.replace_one({"_id": key}, fields, upsert=True)
                logger.debug(f"Stored '{key}' with etag={etag}")
                return etag

            result = await self._collection.update_one(
                {"_id": key, "etag": expected_etag}, {"$set": fields}
            )
            if result.matched_count == 0:
                # Distinguish a lost race from a missing document
                current = await self._collection.find_one({"_id": key}, projection={"etag": 1})
        except PyMongoError as e:
            raise StoreError(f"Failed to write document '{key}': {e}", key=key) from e

        if result.matched_count == 0:
            if current is None:
                raise DocumentNotFoundError(
                    f"Cannot conditionally update missing document '{key}'", key=key
                )
            raise ConcurrencyConflictError(
                f"Document '{key}' was modified concurrently",
                key=key,
                expected_etag=expected_etag,
                current_etag=current.get("etag"),
            )

        logger.debug(f"Updated '{key}' with etag={etag} (was {expected_etag})")
        return etag

    async def list(self, prefix: str = "") -> list[str]:
        query: dict[str, Any] = {}
        if prefix:
            query["_id"] = {"$regex": f"^{re.escape(prefix)}"}
        try:
            cursor = self._collection.find(query, projection={"_id": 1})
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"Failed to list documents with prefix '{prefix}': {e}") from e
        return sorted(doc["_id"] for doc in docs)

    async def delete(self, key: str) -> bool:
        try:
            result = await self._collection.delete_one({"_id": key})
        except PyMongoError as e:
            raise StoreError(f"Failed to delete document '{key}': {e}", key=key) from e
        return result.deleted_count > 0
