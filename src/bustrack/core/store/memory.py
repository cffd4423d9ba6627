"""In-process document store for development and tests."""

import asyncio
import copy
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from bustrack.core.store.base import CREATED_AT, Sort, StoredDocument


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class _Entry:
    seq: int
    document: StoredDocument


def _matches(data: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    if not filters:
        return True
    return all(data.get(key) == value for key, value in filters.items())


class InMemoryDocumentStore:
    """DocumentStore kept in a dict of collections.

    Documents are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._collections: dict[str, dict[str, _Entry]] = {}
        self._clock = clock
        self._seq = 0
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> dict[str, _Entry]:
        return self._collections.setdefault(name, {})

    @staticmethod
    def _copy(document: StoredDocument) -> StoredDocument:
        return StoredDocument(
            id=document.id,
            data=copy.deepcopy(document.data),
            created_at=document.created_at,
            updated_at=document.updated_at,
        )

    def _ordered(
        self,
        collection: str,
        filters: dict[str, Any] | None,
        sort: Sort | None,
    ) -> list[_Entry]:
        entries = [
            entry
            for entry in self._collection(collection).values()
            if _matches(entry.document.data, filters)
        ]
        # Creation order first; the stable sort below keeps it for ties
        entries.sort(key=lambda e: (e.document.created_at, e.seq))

        sort = sort or Sort()
        if sort.field == CREATED_AT:
            if sort.descending:
                entries.reverse()
            return entries

        def field_key(entry: _Entry) -> tuple[bool, Any]:
            value = entry.document.data.get(sort.field)
            return (value is None, value if value is not None else "")

        entries.sort(key=field_key, reverse=sort.descending)
        return entries

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        entry = self._collection(collection).get(doc_id)
        return self._copy(entry.document) if entry else None

    async def find_one(
        self, collection: str, field: str, value: Any
    ) -> StoredDocument | None:
        for entry in self._ordered(collection, {field: value}, None):
            return self._copy(entry.document)
        return None

    async def insert(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        async with self._lock:
            self._seq += 1
            now = self._clock()
            document = StoredDocument(
                id=uuid.uuid4().hex,
                data=copy.deepcopy(data),
                created_at=now,
                updated_at=now,
            )
            self._collection(collection)[document.id] = _Entry(self._seq, document)
        return self._copy(document)

    async def update(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> StoredDocument | None:
        async with self._lock:
            entry = self._collection(collection).get(doc_id)
            if entry is None:
                return None
            entry.document = StoredDocument(
                id=doc_id,
                data=copy.deepcopy(data),
                created_at=entry.document.created_at,
                updated_at=self._clock(),
            )
        return self._copy(entry.document)

    async def delete(self, collection: str, doc_id: str) -> bool:
        async with self._lock:
            return self._collection(collection).pop(doc_id, None) is not None

    async def scan(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        sort: Sort | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        entries = self._ordered(collection, filters, sort)
        end = None if limit is None else offset + limit
        return [self._copy(entry.document) for entry in entries[offset:end]]

    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        return sum(
            1
            for entry in self._collection(collection).values()
            if _matches(entry.document.data, filters)
        )

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None

    def clear(self) -> None:
        """Drop every collection."""
        self._collections.clear()
