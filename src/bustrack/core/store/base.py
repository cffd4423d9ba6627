"""Document store capability used by the repositories.

The store offers keyed documents grouped into collections with exact-match
lookups, ordered scans and counts. It offers no unique constraint and no
atomic check-and-insert; uniqueness of natural keys is the repositories'
job.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


#: Pseudo-field that orders by the store-managed creation timestamp.
CREATED_AT = "created_at"


@dataclass(frozen=True)
class StoredDocument:
    """A document as returned by the store.

    Attributes:
        id: Store-assigned document ID
        data: The document body, without the managed fields
        created_at: Set once on insert
        updated_at: Refreshed on every update
    """

    id: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Sort:
    """Ordering for a scan.

    ``field`` is a document field or ``created_at``. Ties are always broken
    by creation order, then by id.
    """

    field: str = CREATED_AT
    descending: bool = False


@runtime_checkable
class DocumentStore(Protocol):
    """Async document store capability.

    ``filters`` arguments are exact-match field to value mappings.
    """

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        """Return the document with ``doc_id``, or None."""
        ...

    async def find_one(
        self, collection: str, field: str, value: Any
    ) -> StoredDocument | None:
        """Return the first document whose ``field`` equals ``value``, or None."""
        ...

    async def insert(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        """Insert a document and return it with its assigned id and timestamps."""
        ...

    async def update(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> StoredDocument | None:
        """Replace a document body and refresh ``updated_at``.

        Returns None when no document has ``doc_id``.
        """
        ...

    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False when it did not exist."""
        ...

    async def scan(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        sort: Sort | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        """Return an ordered slice of the documents matching ``filters``."""
        ...

    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        """Count the documents matching ``filters``."""
        ...

    async def ping(self) -> None:
        """Raise if the store is unreachable."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...
