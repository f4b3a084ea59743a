"""
Unit tests for the in-memory document store.

Tests read-with-etag, compare-and-swap writes and prefix listing.
"""

import pytest

from hunt_store.exceptions import (ConcurrencyConflictError,
                                   DocumentNotFoundError, StoreError)
from hunt_store.storage import InMemoryDocumentStore


class TestInMemoryGetPut:
    """Test unconditional reads and writes."""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, memory_store):
        """A missing key is not an error."""
        assert await memory_store.get("app.json") is None

    @pytest.mark.asyncio
    async def test_put_then_get(self, memory_store):
        etag = await memory_store.put("app.json", b'{"a": 1}')

        stored = await memory_store.get("app.json")
        assert stored.key == "app.json"
        assert stored.body == b'{"a": 1}'
        assert stored.etag == etag

    @pytest.mark.asyncio
    async def test_every_write_gets_a_new_etag(self, memory_store):
        first = await memory_store.put("app.json", b"{}")
        second = await memory_store.put("app.json", b"{}")

        assert first != second


class TestInMemoryConditionalPut:
    """Test compare-and-swap semantics."""

    @pytest.mark.asyncio
    async def test_matching_etag_succeeds(self, memory_store):
        etag = await memory_store.put("orgs/bhhs.json", b"{}")

        new_etag = await memory_store.put("orgs/bhhs.json", b'{"v": 2}', expected_etag=etag)

        stored = await memory_store.get("orgs/bhhs.json")
        assert stored.etag == new_etag
        assert stored.body == b'{"v": 2}'

    @pytest.mark.asyncio
    async def test_stale_etag_conflicts(self, memory_store):
        """Only one of two writers holding the same etag wins."""
        etag = await memory_store.put("orgs/bhhs.json", b"{}")
        winner = await memory_store.put("orgs/bhhs.json", b'{"w": 1}', expected_etag=etag)

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await memory_store.put("orgs/bhhs.json", b'{"w": 2}', expected_etag=etag)

        error = exc_info.value
        assert isinstance(error, StoreError)
        assert error.key == "orgs/bhhs.json"
        assert error.expected_etag == etag
        assert error.current_etag == winner
        assert (await memory_store.get("orgs/bhhs.json")).body == b'{"w": 1}'

    @pytest.mark.asyncio
    async def test_expected_etag_on_missing_key(self, memory_store):
        with pytest.raises(DocumentNotFoundError):
            await memory_store.put("orgs/ghost.json", b"{}", expected_etag="abc")

        assert await memory_store.get("orgs/ghost.json") is None


    @pytest.mark.asyncio
    async def test_create_only_on_missing_key(self, memory_store):
        etag = await memory_store.put("app.json", b"{}", create_only=True)

        assert (await memory_store.get("app.json")).etag == etag

    @pytest.mark.asyncio
    async def test_create_only_on_existing_key_conflicts(self, memory_store):
        existing = await memory_store.put("app.json", b'{"first": true}')

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await memory_store.put("app.json", b'{"second": true}', create_only=True)

        assert exc_info.value.current_etag == existing
        assert (await memory_store.get("app.json")).body == b'{"first": true}'


class TestInMemoryListDelete:
    """Test listing and maintenance operations."""

    @pytest.mark.asyncio
    async def test_list_by_prefix_is_sorted(self, memory_store):
        for key in ("orgs/vail.json", "app.json", "orgs/bhhs.json"):
            await memory_store.put(key, b"{}")

        assert await memory_store.list("orgs/") == ["orgs/bhhs.json", "orgs/vail.json"]
        assert await memory_store.list() == ["app.json", "orgs/bhhs.json", "orgs/vail.json"]
        assert await memory_store.list("missing/") == []

    @pytest.mark.asyncio
    async def test_delete(self, memory_store):
        await memory_store.put("app.json", b"{}")

        assert await memory_store.delete("app.json") is True
        assert await memory_store.delete("app.json") is False
        assert await memory_store.get("app.json") is None

    @pytest.mark.asyncio
    async def test_clear(self):
        store = InMemoryDocumentStore()
        await store.put("app.json", b"{}")

        store.clear()

        assert await store.list() == []
