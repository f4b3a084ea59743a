"""
Tests for audit command.

Tests auditing and repairing stored documents, against an in-memory store.
"""

import asyncio
import importlib
import json
import logging

import pytest
from click.testing import CliRunner

from hunt_store.cli.commands.audit import (STATUS_ERROR, STATUS_INVALID,
                                           STATUS_MIGRATED, STATUS_MISSING,
                                           STATUS_REPAIRED, STATUS_VALID,
                                           run_audit)
from hunt_store.cli.main import cli
from hunt_store.exceptions import StoreError
from hunt_store.observability import clear_correlation_id
from hunt_store.storage import InMemoryDocumentStore

# The commands package re-exports the click command under the module name
audit_module = importlib.import_module("hunt_store.cli.commands.audit")


def _seed(store, documents):
    async def put_all():
        for key, document in documents.items():
            body = document if isinstance(document, bytes) else json.dumps(document).encode()
            await store.put(key, body)

    asyncio.run(put_all())


def _read(store, key):
    stored = asyncio.run(store.get(key))
    return json.loads(stored.body), stored.etag


class TestRunAudit:
    """Test run_audit on an in-memory store."""

    @pytest.mark.asyncio
    async def test_statuses(self, memory_store, schema_system, store_config,
                            sample_app_v1_2, legacy_org, sample_org_v1_2):
        await memory_store.put("app.json", json.dumps(sample_app_v1_2).encode())
        await memory_store.put("orgs/bhhs.json", json.dumps(legacy_org).encode())
        sample_org_v1_2["org"]["orgSlug"] = ""
        await memory_store.put("orgs/broken.json", json.dumps(sample_org_v1_2).encode())
        await memory_store.put("orgs/garbage.json", b"not json")
        await memory_store.put("orgs/readme.txt", b"ignored")

        entries = await run_audit(memory_store, schema_system, store_config)

        statuses = {entry.key: entry.status for entry in entries}
        assert statuses == {
            "app.json": STATUS_VALID,
            "orgs/bhhs.json": STATUS_MIGRATED,
            "orgs/broken.json": STATUS_INVALID,
            "orgs/garbage.json": STATUS_INVALID,
        }
        migrated = next(e for e in entries if e.key == "orgs/bhhs.json")
        assert migrated.detail == "0.9.0->1.0.0, 1.0.0->1.1.0, 1.1.0->1.2.0"
        broken = next(e for e in entries if e.key == "orgs/broken.json")
        assert "org.orgSlug" in broken.detail

    @pytest.mark.asyncio
    async def test_repair_writes_back(self, memory_store, schema_system, store_config, legacy_app):
        etag = await memory_store.put("app.json", json.dumps(legacy_app).encode())

        entries = await run_audit(memory_store, schema_system, store_config, repair=True)

        assert [entry.status for entry in entries] == [STATUS_REPAIRED]
        stored = await memory_store.get("app.json")
        assert stored.etag != etag
        assert json.loads(stored.body)["schemaVersion"] == "1.2.0"

    @pytest.mark.asyncio
    async def test_repair_dry_run(self, memory_store, schema_system, store_config, legacy_app):
        etag = await memory_store.put("app.json", json.dumps(legacy_app).encode())

        entries = await run_audit(
            memory_store, schema_system, store_config, repair=True, dry_run=True
        )

        assert entries[0].status == STATUS_MIGRATED
        assert (await memory_store.get("app.json")).etag == etag

    @pytest.mark.asyncio
    async def test_selected_orgs(self, memory_store, schema_system, store_config, sample_org_v1_2):
        await memory_store.put("orgs/bhhs.json", json.dumps(sample_org_v1_2).encode())

        entries = await run_audit(
            memory_store, schema_system, store_config, org_slugs=["bhhs", "ghost"]
        )

        assert [(entry.key, entry.status) for entry in entries] == [
            ("app.json", STATUS_MISSING),
            ("orgs/bhhs.json", STATUS_VALID),
            ("orgs/ghost.json", STATUS_MISSING),
        ]

    @pytest.mark.asyncio
    async def test_store_failure_is_reported(self, schema_system, store_config):
        class FailingStore(InMemoryDocumentStore):
            async def get(self, key):
                raise StoreError("backend down", key=key)

        entries = await run_audit(FailingStore(), schema_system, store_config, org_slugs=[])

        assert entries[0].status == STATUS_ERROR
        assert "backend down" in entries[0].detail


    @pytest.mark.asyncio
    async def test_run_shares_one_correlation_id(
        self, memory_store, schema_system, store_config, sample_org_v1_2, caplog
    ):
        clear_correlation_id()
        await memory_store.put("orgs/bhhs.json", json.dumps(sample_org_v1_2).encode())

        class FailingStore(InMemoryDocumentStore):
            async def get(self, key):
                raise StoreError("backend down", key=key)

        with caplog.at_level(logging.ERROR, logger="hunt_store.cli"):
            await run_audit(
                FailingStore(), schema_system, store_config, org_slugs=["bhhs", "vail"]
            )

        failures = [r for r in caplog.records if r.getMessage().startswith("Audit of")]
        assert [r.document_key for r in failures] == [
            "app.json", "orgs/bhhs.json", "orgs/vail.json"
        ]
        assert len({r.correlation_id for r in failures}) == 1
        clear_correlation_id()


class TestAuditCommand:
    """Test the audit command."""

    @pytest.fixture
    def store(self, monkeypatch):
        store = InMemoryDocumentStore()
        monkeypatch.setattr(audit_module, "create_store", lambda config: store)
        for name in ("HUNT_STORE_APP_KEY", "HUNT_STORE_ORG_PREFIX"):
            monkeypatch.delenv(name, raising=False)
        return store

    def test_audit_passes(self, store, sample_app_v1_2, sample_org_v1_2):
        _seed(store, {"app.json": sample_app_v1_2, "orgs/bhhs.json": sample_org_v1_2})

        result = CliRunner().invoke(cli, ["audit"])

        assert result.exit_code == 0
        assert "VALID     app.json @ 1.2.0" in result.output
        assert "VALID     orgs/bhhs.json @ 1.2.0" in result.output
        assert "2 document(s) audited, 0 failing" in result.output

    def test_audit_repair(self, store, legacy_app):
        _seed(store, {"app.json": legacy_app})

        result = CliRunner().invoke(cli, ["audit", "--repair"])

        assert result.exit_code == 0
        assert "REPAIRED  app.json @ 1.2.0" in result.output
        repaired, _ = _read(store, "app.json")
        assert repaired["schemaVersion"] == "1.2.0"

    def test_audit_failures_exit_nonzero(self, store, sample_app_v1_2):
        _seed(store, {"app.json": sample_app_v1_2, "orgs/bhhs.json": b"{"})

        result = CliRunner().invoke(cli, ["audit", "--orgs", "bhhs, ,"])

        assert result.exit_code == 1
        assert "INVALID   orgs/bhhs.json" in result.output
        assert "2 document(s) audited, 1 failing" in result.output

    def test_audit_requires_mongo_settings(self, monkeypatch):
        monkeypatch.delenv("MONGO_URI", raising=False)

        result = CliRunner().invoke(cli, ["audit"])

        assert result.exit_code == 1
        assert "mongo_uri is required" in result.output
