"""SQLAlchemy-backed document store.

All collections share one ``documents`` table keyed by (collection, id),
with the document body in a JSON column. Exact-match filters and sorts
address fields inside that column.
"""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import JSON, Select, String, delete, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import ColumnElement

from bustrack.core.database import Base, TimestampMixin, create_session_factory
from bustrack.core.errors.exceptions import ErrorKind, StoreError
from bustrack.core.store.base import CREATED_AT, Sort, StoredDocument


logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DocumentRecord(Base, TimestampMixin):
    """One document of one collection."""

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def to_document(self) -> StoredDocument:
        return StoredDocument(
            id=self.id,
            data=dict(self.data or {}),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


def field_equals(field: str, value: Any) -> ColumnElement[bool]:
    """Build an exact-match clause on a field of the JSON body."""
    element = DocumentRecord.data[field]
    if value is None:
        return element.as_string().is_(None)
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    return element.as_string() == str(value)


def build_scan(
    collection: str,
    filters: dict[str, Any] | None = None,
    sort: Sort | None = None,
) -> Select[tuple[DocumentRecord]]:
    """Build the filtered, ordered select used by ``scan``."""
    stmt = select(DocumentRecord).where(DocumentRecord.collection == collection)
    for key, value in (filters or {}).items():
        stmt = stmt.where(field_equals(key, value))

    sort = sort or Sort()
    if sort.field != CREATED_AT:
        column = DocumentRecord.data[sort.field].as_string()
        stmt = stmt.order_by(column.desc() if sort.descending else column.asc())
        return stmt.order_by(DocumentRecord.created_at.asc(), DocumentRecord.id.asc())

    if sort.descending:
        return stmt.order_by(DocumentRecord.created_at.desc(), DocumentRecord.id.desc())
    return stmt.order_by(DocumentRecord.created_at.asc(), DocumentRecord.id.asc())


class SQLAlchemyDocumentStore:
    """DocumentStore over an async SQLAlchemy engine.

    Every call runs in its own session and commits before returning.
    Driver and connectivity failures are re-raised as ``StoreError``.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.engine = engine
        self._session_factory = session_factory or create_session_factory(engine)
        self._clock = clock

    @staticmethod
    def _wrap(operation: str, exc: Exception) -> StoreError:
        logger.error("store_error", backend="sql", operation=operation, error=str(exc))
        return StoreError(
            f"Document store {operation} failed",
            error_code=ErrorKind.STORE_UNAVAILABLE,
            details={"operation": operation},
        )

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        try:
            async with self._session_factory() as session:
                record = await session.get(DocumentRecord, (collection, doc_id))
                return record.to_document() if record else None
        except (SQLAlchemyError, OSError) as exc:
            raise self._wrap("get", exc) from exc

    async def find_one(
        self, collection: str, field: str, value: Any
    ) -> StoredDocument | None:
        stmt = build_scan(collection, {field: value}).limit(1)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                record = result.scalar_one_or_none()
                return record.to_document() if record else None
        except (SQLAlchemyError, OSError) as exc:
            raise self._wrap("find_one", exc) from exc

    async def insert(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        now = self._clock()
        record = DocumentRecord(
            collection=collection,
            id=uuid.uuid4().hex,
            data=dict(data),
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
                return record.to_document()
        except (SQLAlchemyError, OSError) as exc:
            raise self._wrap("insert", exc) from exc

    async def update(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> StoredDocument | None:
        try:
            async with self._session_factory() as session:
                record = await session.get(DocumentRecord, (collection, doc_id))
                if record is None:
                    return None
                record.data = dict(data)
                record.updated_at = self._clock()
                await session.commit()
                return record.to_document()
        except (SQLAlchemyError, OSError) as exc:
            raise self._wrap("update", exc) from exc

    async def delete(self, collection: str, doc_id: str) -> bool:
        stmt = delete(DocumentRecord).where(
            DocumentRecord.collection == collection,
            DocumentRecord.id == doc_id,
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return bool(result.rowcount)
        except (SQLAlchemyError, OSError) as exc:
            raise self._wrap("delete", exc) from exc

    async def scan(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        sort: Sort | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        stmt = build_scan(collection, filters, sort).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [record.to_document() for record in result.scalars().all()]
        except (SQLAlchemyError, OSError) as exc:
            raise self._wrap("scan", exc) from exc

    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        stmt = (
            select(func.count())
            .select_from(DocumentRecord)
            .where(DocumentRecord.collection == collection)
        )
        for key, value in (filters or {}).items():
            stmt = stmt.where(field_equals(key, value))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())
        except (SQLAlchemyError, OSError) as exc:
            raise self._wrap("count", exc) from exc

    async def ping(self) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            raise self._wrap("ping", exc) from exc

    async def close(self) -> None:
        await self.engine.dispose()
