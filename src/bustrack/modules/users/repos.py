"""User repository over the document store."""

from typing import Annotated

from fastapi import Depends

from bustrack.api.dependencies import AppSettings, Store
from bustrack.core.constants import USERS_COLLECTION
from bustrack.core.repository import DocumentRepository, EntityMapping
from bustrack.core.store.base import DocumentStore
from bustrack.modules.users.models import User, normalize_email


USER_MAPPING = EntityMapping(
    model=User,
    collection=USERS_COLLECTION,
    natural_key="email",
    normalize_key=normalize_email,
    resource="user",
)


class UserRepository(DocumentRepository[User]):
    """Repository for users, keyed naturally by normalized email."""

    def __init__(self, store: DocumentStore, timeout: float | None = None) -> None:
        super().__init__(store, USER_MAPPING, timeout)

    async def find_by_email(self, email: str) -> User | None:
        """Get a user by email address, case-insensitively.

        Args:
            email: The user's email, in any case

        Returns:
            User if found, None otherwise
        """
        return await self.find_by_natural_key(email)


async def get_user_repo(store: Store, settings: AppSettings) -> UserRepository:
    """Dependency that provides a UserRepository."""
    return UserRepository(store, timeout=settings.store_timeout_seconds)


UserRepo = Annotated[UserRepository, Depends(get_user_repo)]
