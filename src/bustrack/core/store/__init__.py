"""Document store capability and its backends."""

from bustrack.core.store.base import CREATED_AT, DocumentStore, Sort, StoredDocument
from bustrack.core.store.memory import InMemoryDocumentStore


__all__ = [
    "CREATED_AT",
    "DocumentStore",
    "InMemoryDocumentStore",
    "Sort",
    "StoredDocument",
]
