"""Unit tests for the in-memory document store."""

from datetime import UTC, datetime, timedelta

import pytest

from bustrack.core.store.base import DocumentStore, Sort
from bustrack.core.store.memory import InMemoryDocumentStore


pytestmark = pytest.mark.unit


class StepClock:
    """Clock that advances one second per reading."""

    def __init__(self) -> None:
        self.current = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(clock=StepClock())


def test_satisfies_protocol(store):
    assert isinstance(store, DocumentStore)


class TestCrud:
    """Tests for single-document operations."""

    async def test_insert_and_get(self, store):
        inserted = await store.insert("buses", {"plate": "ABC123"})

        fetched = await store.get("buses", inserted.id)

        assert fetched == inserted
        assert fetched.created_at == fetched.updated_at

    async def test_get_missing(self, store):
        assert await store.get("buses", "nope") is None

    async def test_collections_are_separate(self, store):
        inserted = await store.insert("buses", {"plate": "ABC123"})

        assert await store.get("users", inserted.id) is None

    async def test_returned_documents_are_copies(self, store):
        inserted = await store.insert("buses", {"position": {"lat": 1.0}})
        inserted.data["position"]["lat"] = 99.0

        fetched = await store.get("buses", inserted.id)

        assert fetched.data["position"]["lat"] == 1.0

    async def test_update_replaces_body_and_refreshes_updated_at(self, store):
        inserted = await store.insert("buses", {"plate": "ABC123", "route": "R1"})

        updated = await store.update("buses", inserted.id, {"plate": "ABC123"})

        assert updated.data == {"plate": "ABC123"}
        assert updated.created_at == inserted.created_at
        assert updated.updated_at > inserted.updated_at

    async def test_update_missing(self, store):
        assert await store.update("buses", "nope", {}) is None

    async def test_delete(self, store):
        inserted = await store.insert("buses", {})

        assert await store.delete("buses", inserted.id) is True
        assert await store.delete("buses", inserted.id) is False
        assert await store.get("buses", inserted.id) is None

    async def test_find_one(self, store):
        await store.insert("users", {"email": "a@x.com"})
        wanted = await store.insert("users", {"email": "b@x.com"})

        assert (await store.find_one("users", "email", "b@x.com")).id == wanted.id
        assert await store.find_one("users", "email", "c@x.com") is None


class TestScan:
    """Tests for scan and count."""

    async def test_creation_order_and_slicing(self, store):
        ids = [(await store.insert("buses", {"n": n})).id for n in range(5)]

        page = await store.scan("buses", offset=1, limit=2)

        assert [doc.id for doc in page] == ids[1:3]
        assert [doc.id for doc in await store.scan("buses")] == ids

    async def test_filters(self, store):
        await store.insert("buses", {"status": "moving", "is_favorite": True})
        await store.insert("buses", {"status": "moving", "is_favorite": False})
        await store.insert("buses", {"status": "parked", "is_favorite": True})

        moving = await store.scan("buses", filters={"status": "moving"})
        favorite_moving = await store.scan(
            "buses", filters={"status": "moving", "is_favorite": True}
        )

        assert len(moving) == 2
        assert len(favorite_moving) == 1
        assert await store.count("buses", {"is_favorite": True}) == 2
        assert await store.count("buses") == 3

    async def test_sort_by_field(self, store):
        for plate in ["CCC", "AAA", "BBB"]:
            await store.insert("buses", {"plate": plate})

        ascending = await store.scan("buses", sort=Sort(field="plate"))
        descending = await store.scan("buses", sort=Sort(field="plate", descending=True))

        assert [d.data["plate"] for d in ascending] == ["AAA", "BBB", "CCC"]
        assert [d.data["plate"] for d in descending] == ["CCC", "BBB", "AAA"]

    async def test_sort_ties_keep_creation_order(self, store):
        first = await store.insert("buses", {"status": "parked"})
        second = await store.insert("buses", {"status": "parked"})

        docs = await store.scan("buses", sort=Sort(field="status"))

        assert [d.id for d in docs] == [first.id, second.id]

    async def test_sort_created_at_descending(self, store):
        first = await store.insert("buses", {})
        second = await store.insert("buses", {})

        docs = await store.scan("buses", sort=Sort(descending=True))

        assert [d.id for d in docs] == [second.id, first.id]

    async def test_same_timestamp_keeps_insertion_order(self):
        frozen = datetime(2026, 1, 1, tzinfo=UTC)
        store = InMemoryDocumentStore(clock=lambda: frozen)
        ids = [(await store.insert("buses", {})).id for _ in range(10)]

        assert [d.id for d in await store.scan("buses")] == ids
