"""Database layer - engine, session factory and declarative base."""

from bustrack.core.database.base import Base, TimestampMixin
from bustrack.core.database.session import (
    create_engine,
    create_session_factory,
    init_db,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "create_engine",
    "create_session_factory",
    "init_db",
]
