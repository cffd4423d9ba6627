"""Generic entity repository over the document store.

One implementation, ``DocumentRepository``, serves every entity. What varies
per entity (collection, natural key, key normalization, model class) is
captured by an ``EntityMapping`` passed in at construction.

The store has no unique constraint, so ``create`` enforces natural-key
uniqueness by looking the key up before inserting. The lookup and the insert
are not atomic: two concurrent creates with the same key can both succeed.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from bustrack.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from bustrack.core.errors.exceptions import (
    AppException,
    ConflictError,
    ErrorKind,
    NotFoundError,
    StoreError,
    ValidationError,
)
from bustrack.core.store.base import DocumentStore, Sort, StoredDocument


logger = structlog.get_logger()

#: Managed by the store, never written into a document body.
MANAGED_FIELDS = frozenset({"id", "created_at", "updated_at"})

EntityT = TypeVar("EntityT", bound=BaseModel)
R = TypeVar("R")


class Page(BaseModel, Generic[EntityT]):
    """One page of a listing.

    Attributes:
        items: Entities on this page
        page: 1-based page number
        page_size: Requested page size
        total: Matching entities across all pages
        total_pages: ``ceil(total / page_size)``
        has_more: Whether a later page has items
    """

    items: list[EntityT] = Field(default_factory=list)
    page: int
    page_size: int
    total: int
    total_pages: int
    has_more: bool


class EntityRepository(Protocol[EntityT]):
    """Persistence contract for an entity with a natural key."""

    async def create(self, entity: EntityT) -> EntityT: ...

    async def find_by_id(self, entity_id: str) -> EntityT | None: ...

    async def find_by_natural_key(self, key: str) -> EntityT | None: ...

    async def update(self, entity: EntityT) -> EntityT: ...

    async def remove(self, entity_id: str) -> None: ...

    async def list(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        filters: dict[str, Any] | None = None,
        sort: Sort | None = None,
    ) -> Page[EntityT]: ...


@dataclass(frozen=True)
class EntityMapping(Generic[EntityT]):
    """How one entity type maps onto documents.

    Attributes:
        model: Pydantic model class of the entity
        collection: Store collection holding the documents
        natural_key: Field that must be unique across the collection
        normalize_key: Canonical form of the natural key
        resource: Name used in error messages and logs
    """

    model: type[EntityT]
    collection: str
    natural_key: str
    normalize_key: Callable[[str], str]
    resource: str

    def to_document(self, entity: EntityT) -> dict[str, Any]:
        """Serialize an entity body, with its natural key normalized.

        ``model_copy(update=...)`` skips validation, so the entity is
        checked against its model again here.

        Raises:
            ValidationError: If the entity breaks its model constraints
        """
        try:
            entity = self.model.model_validate(entity.model_dump())
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(f"Invalid {self.resource} data", exc) from exc
        data = entity.model_dump(mode="json", exclude=set(MANAGED_FIELDS))
        data[self.natural_key] = self.normalize_key(data[self.natural_key])
        return data

    def from_document(self, document: StoredDocument) -> EntityT:
        """Rebuild an entity from a stored document.

        Raises:
            StoreError: If the document no longer fits the model
        """
        try:
            return self.model.model_validate(
                {
                    **document.data,
                    "id": document.id,
                    "created_at": document.created_at,
                    "updated_at": document.updated_at,
                }
            )
        except PydanticValidationError as exc:
            logger.error(
                "store_error",
                reason="corrupt_document",
                collection=self.collection,
                document_id=document.id,
                error_count=exc.error_count(),
            )
            raise StoreError(
                f"Stored {self.resource} could not be read",
                details={"resource": self.resource, "resource_id": document.id},
            ) from exc


class DocumentRepository(Generic[EntityT]):
    """EntityRepository implemented on a DocumentStore.

    Every store call runs under ``timeout`` seconds. Timeouts surface as
    ``StoreError`` with kind ``store_unavailable``.
    """

    def __init__(
        self,
        store: DocumentStore,
        mapping: EntityMapping[EntityT],
        timeout: float | None = None,
    ) -> None:
        self.store = store
        self.mapping = mapping
        self.timeout = timeout

    async def _call(self, operation: str, awaitable: Awaitable[R]) -> R:
        try:
            async with asyncio.timeout(self.timeout):
                return await awaitable
        except TimeoutError as exc:
            logger.error(
                "store_error",
                reason="timeout",
                operation=operation,
                collection=self.mapping.collection,
                timeout=self.timeout,
            )
            raise StoreError(
                f"Document store {operation} timed out",
                error_code=ErrorKind.STORE_UNAVAILABLE,
                details={"operation": operation},
            ) from exc
        except AppException:
            raise
        except OSError as exc:
            logger.error(
                "store_error",
                reason="connection",
                operation=operation,
                collection=self.mapping.collection,
                error=str(exc),
            )
            raise StoreError(
                f"Document store {operation} failed",
                error_code=ErrorKind.STORE_UNAVAILABLE,
                details={"operation": operation},
            ) from exc

    def _not_found(self, entity_id: str) -> NotFoundError:
        resource = self.mapping.resource
        return NotFoundError(
            f"{resource.capitalize()} not found",
            resource=resource,
            resource_id=entity_id,
        )

    async def create(self, entity: EntityT) -> EntityT:
        """Insert a new entity.

        Raises:
            ConflictError: If the normalized natural key is already taken
        """
        data = self.mapping.to_document(entity)
        key = data[self.mapping.natural_key]

        existing = await self._call(
            "find_one",
            self.store.find_one(self.mapping.collection, self.mapping.natural_key, key),
        )
        if existing is not None:
            raise ConflictError(
                f"A {self.mapping.resource} with this {self.mapping.natural_key} "
                "already exists",
                details={"field": self.mapping.natural_key, "value": key},
            )

        document = await self._call(
            "insert", self.store.insert(self.mapping.collection, data)
        )
        return self.mapping.from_document(document)

    async def find_by_id(self, entity_id: str) -> EntityT | None:
        document = await self._call(
            "get", self.store.get(self.mapping.collection, entity_id)
        )
        return self.mapping.from_document(document) if document else None

    async def find_by_natural_key(self, key: str) -> EntityT | None:
        document = await self._call(
            "find_one",
            self.store.find_one(
                self.mapping.collection,
                self.mapping.natural_key,
                self.mapping.normalize_key(key),
            ),
        )
        return self.mapping.from_document(document) if document else None

    async def update(self, entity: EntityT) -> EntityT:
        """Replace the stored body of an existing entity.

        Natural-key uniqueness is not re-checked here.

        Raises:
            NotFoundError: If no entity has ``entity.id``
        """
        entity_id = getattr(entity, "id", None)
        if not entity_id:
            raise self._not_found("")

        document = await self._call(
            "update",
            self.store.update(
                self.mapping.collection,
                entity_id,
                self.mapping.to_document(entity),
            ),
        )
        if document is None:
            raise self._not_found(entity_id)
        return self.mapping.from_document(document)

    async def remove(self, entity_id: str) -> None:
        """Delete an entity.

        Raises:
            NotFoundError: If no entity has ``entity_id``
        """
        deleted = await self._call(
            "delete", self.store.delete(self.mapping.collection, entity_id)
        )
        if not deleted:
            raise self._not_found(entity_id)

    async def list(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        filters: dict[str, Any] | None = None,
        sort: Sort | None = None,
    ) -> Page[EntityT]:
        """Return one page of entities matching ``filters``.

        Raises:
            ValidationError: If ``page`` < 1 or ``page_size`` is outside 1..100
        """
        errors: list[dict[str, Any]] = []
        if page < 1:
            errors.append({"field": "page", "message": "Page must be at least 1"})
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            errors.append(
                {
                    "field": "page_size",
                    "message": f"Page size must be between 1 and {MAX_PAGE_SIZE}",
                }
            )
        if errors:
            raise ValidationError("Invalid pagination parameters", errors=errors)

        filters = {key: value for key, value in (filters or {}).items() if value is not None}
        collection = self.mapping.collection

        total = await self._call("count", self.store.count(collection, filters))
        documents = await self._call(
            "scan",
            self.store.scan(
                collection,
                filters=filters,
                sort=sort,
                offset=(page - 1) * page_size,
                limit=page_size,
            ),
        )

        return Page(
            items=[self.mapping.from_document(doc) for doc in documents],
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size),
            has_more=page * page_size < total,
        )
