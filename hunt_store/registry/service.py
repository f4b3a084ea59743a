"""
Registry Service

Document-level read-modify-write on top of a DocumentStore and the
validation service:

- ``load_app`` / ``load_org`` read, migrate and validate a document and
  return it with the etag observed at read time
- ``upsert_app`` / ``upsert_org`` validate strictly and write with the
  caller's expected etag

Concurrency relies entirely on the store's etag comparison: no in-process
locks, no retries. A ``ConcurrencyConflictError`` reaches the caller
unchanged, and the caller reloads, reapplies its change and retries.

Loading the App Registry never fails (a missing or broken document yields
an empty default); loading an Org document raises instead, because an org
that is referenced is expected to exist.
"""

import asyncio
import json
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Set, Tuple

from ..config import StoreConfig
from ..constants import KIND_APP_DATA, KIND_ORG_DATA
from ..exceptions import (DocumentNotFoundError, DocumentValidationError,
                          StoreError)
from ..observability import (MetricsCollector, get_logger, log_operation,
                             operation_context)
from ..schemas.app_data import default_app_data
from ..schemas.validation import (MIGRATION_FAILED, ValidationError,
                                  ValidationOptions, ValidationResult,
                                  ValidationService, ValidationWarning)
from ..storage.base import DocumentStore, StoredDocument
from . import helpers

logger = get_logger(__name__)

_LOAD_OPTIONS = ValidationOptions(auto_migrate=True, include_warnings=True)
_UPSERT_OPTIONS = ValidationOptions(strict=True, auto_migrate=False, include_warnings=False)


@dataclass(frozen=True)
class LoadedDocument:
    """
    A validated document and the etag it was read with.

    ``etag`` is None when the document does not exist yet (default App
    Registry); pass it back as ``expected_etag`` on the next upsert.
    """

    data: Dict[str, Any]
    etag: Optional[str]
    version: Optional[str] = None
    migration_applied: bool = False
    warnings: Tuple[ValidationWarning, ...] = ()


class RegistryService:
    """
    App Registry and Org document façade.

    Example:
        system = create_schema_system()
        registry = RegistryService(InMemoryDocumentStore(), system.validation)

        loaded = await registry.load_app()
        app = registry.add_organization(loaded.data, summary)
        etag = await registry.upsert_app(app, expected_etag=loaded.etag)
    """

    # Pure document helpers, exposed on the service for convenience
    add_organization = staticmethod(helpers.add_organization)
    add_hunt_to_org = staticmethod(helpers.add_hunt_to_org)
    update_by_date_index = staticmethod(helpers.update_by_date_index)
    create_new_org = staticmethod(helpers.create_new_org)
    create_new_hunt = staticmethod(helpers.create_new_hunt)
    generate_hunt_slug = staticmethod(helpers.generate_hunt_slug)
    generate_hunt_id = staticmethod(helpers.generate_hunt_id)

    def __init__(
        self,
        store: DocumentStore,
        validation: ValidationService,
        config: Optional[StoreConfig] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize the registry service.

        Args:
            store: Backing document store
            validation: Validation service built by ``create_schema_system``
            config: Store configuration (environment defaults when None)
            metrics: Metrics collector (a private one when None)
        """
        self.store = store
        self.validation = validation
        self.config = config or StoreConfig()
        self.metrics = metrics or MetricsCollector()
        self._write_backs: Set[asyncio.Task] = set()

    @property
    def app_key(self) -> str:
        return self.config.app_key

    def get_org_key(self, org_slug: str) -> str:
        """Storage key of an organization document."""
        return f"{self.config.org_key_prefix}{org_slug}.json"

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    async def load_app(self) -> LoadedDocument:
        """
        Load the App Registry, migrating it if needed.

        Returns a default, empty App Registry with ``etag=None`` when the
        document is missing, unreadable or invalid. A missing document is a
        normal first run; the other two count as failed loads in metrics.
        """
        key = self.app_key
        with operation_context(KIND_APP_DATA, key):
            try:
                with self.metrics.timed("registry.load_app"):
                    loaded = await self._load(KIND_APP_DATA, key)
            except (DocumentValidationError, StoreError) as e:
                logger.warning(f"App registry '{key}' unusable, returning default structure: {e}")
                loaded = None
            else:
                if loaded is None:
                    logger.info(f"App registry '{key}' not found, returning default structure")

        if loaded is not None:
            return loaded
        return LoadedDocument(
            data=default_app_data(self.config.default_environment, helpers.utc_now_iso()),
            etag=None,
            version=self.validation.schemas.get_latest_version(KIND_APP_DATA),
        )

    async def load_org(self, org_slug: str) -> LoadedDocument:
        """
        Load an organization document, migrating it if needed.

        Raises:
            DocumentNotFoundError: If the organization document does not exist
            DocumentValidationError: If it cannot be validated at the latest version
            StoreError: On backend failures
        """
        key = self.get_org_key(org_slug)
        with operation_context(KIND_ORG_DATA, key, org_slug=org_slug):
            try:
                with self.metrics.timed("registry.load_org"):
                    loaded = await self._load(KIND_ORG_DATA, key)
                    if loaded is None:
                        raise DocumentNotFoundError(
                            f"Organization '{org_slug}' not found", key=key
                        )
            except StoreError as e:
                logger.error(f"Failed to load org '{org_slug}': {e}")
                raise
            except DocumentValidationError as e:
                logger.error(f"Org '{org_slug}' failed validation: {e}")
                raise
        return loaded

    async def _load(self, kind: str, key: str) -> Optional[LoadedDocument]:
        """Read, migrate and validate ``key``; None when it does not exist."""
        stored = await self.store.get(key)
        if stored is None:
            return None

        raw = self._decode(kind, stored)
        result = await self.validation.validate(kind, raw, _LOAD_OPTIONS)
        self._ensure_latest(kind, key, result)

        if result.warnings:
            logger.warning(
                f"{kind} '{key}' validation warnings: {', '.join(result.warning_codes)}"
            )

        if result.migration_applied:
            log_operation(
                logger,
                "registry.migrate_on_load",
                key=key,
                migrations=list(result.migration_details.migrations_applied),
            )
            if self.config.write_back_migrations:
                self._schedule_write_back(kind, key, result.data, stored.etag)

        return LoadedDocument(
            data=result.data,
            etag=stored.etag,
            version=result.version,
            migration_applied=result.migration_applied,
            warnings=result.warnings,
        )

    def _ensure_latest(self, kind: str, key: str, result: ValidationResult) -> None:
        if not result.success:
            raise DocumentValidationError(
                f"{kind} validation failed: " + ", ".join(e.message for e in result.errors),
                errors=list(result.errors),
                document_kind=kind,
                schema_version=result.version,
                context={"key": key},
            )

        latest = self.validation.schemas.get_latest_version(kind)
        if result.version != latest:
            # Non-strict validation fell back to the stored version after a failed migration
            details = result.migration_details
            message = details.error if details and details.error else "migration not applied"
            raise DocumentValidationError(
                f"{kind} could not be brought to version {latest}: {message}",
                errors=[ValidationError(code=MIGRATION_FAILED, message=message)],
                document_kind=kind,
                schema_version=result.version,
                context={"key": key},
            )

    # ------------------------------------------------------------------
    # Write-back of migrated documents
    # ------------------------------------------------------------------

    def _schedule_write_back(
        self, kind: str, key: str, data: Dict[str, Any], etag: str
    ) -> None:
        body = self._encode(data)
        task = asyncio.create_task(self._write_back(kind, key, body, etag))
        self._write_backs.add(task)
        task.add_done_callback(self._write_backs.discard)

    async def _write_back(self, kind: str, key: str, body: bytes, etag: str) -> None:
        try:
            with self.metrics.timed("registry.write_back", document_kind=kind):
                new_etag = await self.store.put(key, body, expected_etag=etag)
        except StoreError as e:
            logger.error(f"Write-back of migrated {kind} '{key}' failed: {e}", exc_info=True)
            return
        logger.info(f"Wrote back migrated {kind} '{key}' (etag {etag} -> {new_etag})")

    async def wait_for_write_backs(self) -> None:
        """Wait until every pending write-back has finished."""
        while self._write_backs:
            await asyncio.gather(*list(self._write_backs))

    # ------------------------------------------------------------------
    # Upserts
    # ------------------------------------------------------------------

    async def upsert_app(
        self, app_data: Dict[str, Any], expected_etag: Optional[str] = None
    ) -> str:
        """
        Validate strictly and write the App Registry.

        Args:
            app_data: App Registry document at the latest version
            expected_etag: Etag from the last load (None for a first write, which
                fails if another writer created the document meanwhile)

        Returns:
            The new etag

        Raises:
            DocumentValidationError: If the document is invalid
            ConcurrencyConflictError: If the stored document changed since the load
        """
        with operation_context(KIND_APP_DATA, self.app_key), self.metrics.timed(
            "registry.upsert_app"
        ):
            return await self._upsert(KIND_APP_DATA, self.app_key, app_data, expected_etag)

    async def upsert_org(
        self, org_data: Dict[str, Any], org_slug: str, expected_etag: Optional[str] = None
    ) -> str:
        """
        Validate strictly and write an organization document.

        Raises:
            DocumentValidationError: If the document is invalid
            ConcurrencyConflictError: If the stored document changed since the load
        """
        key = self.get_org_key(org_slug)
        with operation_context(KIND_ORG_DATA, key, org_slug=org_slug), self.metrics.timed(
            "registry.upsert_org"
        ):
            return await self._upsert(KIND_ORG_DATA, key, org_data, expected_etag)

    async def _upsert(
        self, kind: str, key: str, data: Dict[str, Any], expected_etag: Optional[str]
    ) -> str:
        updated = {**data, "updatedAt": helpers.utc_now_iso()}
        result = await self.validation.validate(kind, updated, _UPSERT_OPTIONS)
        if not result.success:
            logger.error(f"{kind} '{key}' rejected before write: {', '.join(result.error_codes)}")
            raise DocumentValidationError(
                f"{kind} validation failed: " + ", ".join(e.message for e in result.errors),
                errors=list(result.errors),
                document_kind=kind,
                schema_version=result.version,
                context={"key": key},
            )

        # Without an etag the caller believes the document does not exist yet
        etag = await self.store.put(
            key,
            self._encode(result.data),
            expected_etag=expected_etag,
            create_only=expected_etag is None,
        )
        logger.info(f"Wrote {kind} '{key}' (etag {expected_etag} -> {etag})")
        return etag

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_org_slugs(self) -> List[str]:
        """Slugs of every stored organization document."""
        prefix = self.config.org_key_prefix
        keys = await self.store.list(prefix)
        return [key[len(prefix) : -len(".json")] for key in keys if key.endswith(".json")]

    async def list_hunts_for_date(self, date_str: Optional[str] = None) -> List[Dict[str, Any]]:
        """Date index entries for ``date_str`` (today when omitted)."""
        date_str = date_str or date.today().isoformat()
        loaded = await self.load_app()
        return list((loaded.data.get("byDate") or {}).get(date_str, []))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @staticmethod
    def _encode(data: Dict[str, Any]) -> bytes:
        return json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")

    @staticmethod
    def _decode(kind: str, stored: StoredDocument) -> Any:
        try:
            return json.loads(stored.body)
        except ValueError as e:
            raise DocumentValidationError(
                f"{kind} document '{stored.key}' is not valid JSON: {e}",
                document_kind=kind,
                context={"key": stored.key},
            ) from e
