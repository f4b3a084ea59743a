"""
Audit command for CLI.

Checks the App Registry and organization documents in the configured
store, optionally writing migrated documents back.
"""

import asyncio
import json
import sys
from dataclasses import dataclass
from typing import List, Optional, Tuple

import click

from ...config import StoreConfig
from ...constants import KIND_APP_DATA, KIND_ORG_DATA
from ...exceptions import ConfigurationError, StoreError
from ...observability import (get_correlation_id, get_logger,
                              operation_context, set_correlation_id)
from ...schemas import SchemaSystem, create_schema_system
from ...schemas.validation import ValidationOptions
from ...storage import DocumentStore, MongoDocumentStore

logger = get_logger(__name__)

STATUS_VALID = "valid"
STATUS_MIGRATED = "migrated"
STATUS_REPAIRED = "repaired"
STATUS_INVALID = "invalid"
STATUS_MISSING = "missing"
STATUS_ERROR = "error"


@dataclass
class AuditEntry:
    """Audit outcome of one stored document."""

    key: str
    kind: str
    status: str
    version: Optional[str] = None
    detail: str = ""


def create_store(config: StoreConfig) -> DocumentStore:
    """Store used by the audit; MongoDB from configuration."""
    return MongoDocumentStore.from_config(config)


async def audit_document(
    store: DocumentStore,
    system: SchemaSystem,
    kind: str,
    key: str,
    repair: bool,
    dry_run: bool,
) -> AuditEntry:
    """Validate one stored document and, if asked, persist its migrated form."""
    stored = await store.get(key)
    if stored is None:
        return AuditEntry(key, kind, STATUS_MISSING, detail="document not found")

    try:
        raw = json.loads(stored.body)
    except ValueError as e:
        return AuditEntry(key, kind, STATUS_INVALID, detail=f"not valid JSON: {e}")

    result = await system.validation.validate(kind, raw, ValidationOptions(auto_migrate=True))
    latest = system.registry.get_latest_version(kind)
    if not result.success or result.version != latest:
        detail = "; ".join(f"{'.'.join(e.path) or 'root'}: {e.message}" for e in result.errors)
        if result.migration_details and result.migration_details.error:
            detail = detail or result.migration_details.error
        return AuditEntry(key, kind, STATUS_INVALID, result.version, detail)

    if not result.migration_applied:
        return AuditEntry(key, kind, STATUS_VALID, result.version)

    steps = ", ".join(result.migration_details.migrations_applied)
    if not repair or dry_run:
        return AuditEntry(key, kind, STATUS_MIGRATED, result.version, steps)

    body = json.dumps(result.data, indent=2, ensure_ascii=False).encode("utf-8")
    await store.put(key, body, expected_etag=stored.etag)
    logger.info(f"Repaired {kind} '{key}': {steps}")
    return AuditEntry(key, kind, STATUS_REPAIRED, result.version, steps)


async def run_audit(
    store: DocumentStore,
    system: SchemaSystem,
    config: StoreConfig,
    repair: bool = False,
    dry_run: bool = False,
    org_slugs: Optional[List[str]] = None,
) -> List[AuditEntry]:
    """Audit the App Registry and the selected (default: all) organization documents."""
    targets: List[Tuple[str, str]] = [(KIND_APP_DATA, config.app_key)]
    if org_slugs is None:
        org_keys = [
            key
            for key in await store.list(config.org_key_prefix)
            if key.endswith(".json")
        ]
    else:
        org_keys = [f"{config.org_key_prefix}{slug}.json" for slug in org_slugs]
    targets.extend((KIND_ORG_DATA, key) for key in org_keys)

    # One correlation ID for the whole run
    if get_correlation_id() is None:
        set_correlation_id()
    logger.info(f"Auditing {len(targets)} document(s)")

    entries = []
    for kind, key in targets:
        with operation_context(kind, key):
            try:
                entry = await audit_document(store, system, kind, key, repair, dry_run)
            except StoreError as e:
                logger.error(f"Audit of '{key}' failed: {e}")
                entry = AuditEntry(key, kind, STATUS_ERROR, detail=str(e))
        entries.append(entry)
    return entries


_STATUS_COLORS = {
    STATUS_VALID: "green",
    STATUS_REPAIRED: "green",
    STATUS_MIGRATED: "yellow",
    STATUS_MISSING: "yellow",
    STATUS_INVALID: "red",
    STATUS_ERROR: "red",
}


@click.command()
@click.option("--repair", is_flag=True, help="Write migrated documents back to the store")
@click.option("--dry-run", is_flag=True, help="With --repair, report without writing")
@click.option("--orgs", default=None, help="Comma-separated org slugs (default: all)")
def audit(repair: bool, dry_run: bool, orgs: Optional[str]) -> None:
    """
    Audit stored documents against the latest schema versions.

    Reads MONGO_URI / DB_NAME and the HUNT_STORE_* settings from the
    environment.

    Examples:
        hunt-store audit
        hunt-store audit --repair --dry-run
        hunt-store audit --orgs bhhs,vail-resorts --repair
    """
    config = StoreConfig()
    try:
        store = create_store(config)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    org_slugs = [slug.strip() for slug in orgs.split(",") if slug.strip()] if orgs else None
    system = create_schema_system()
    entries = asyncio.run(run_audit(store, system, config, repair, dry_run, org_slugs))

    for entry in entries:
        line = f"{entry.status.upper():9} {entry.key}"
        if entry.version:
            line += f" @ {entry.version}"
        if entry.detail:
            line += f" ({entry.detail})"
        click.echo(click.style(line, fg=_STATUS_COLORS.get(entry.status)))

    failed = [e for e in entries if e.status in (STATUS_INVALID, STATUS_ERROR)]
    click.echo(f"\n{len(entries)} document(s) audited, {len(failed)} failing")
    sys.exit(1 if failed else 0)
