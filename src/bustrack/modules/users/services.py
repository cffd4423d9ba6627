"""User administration service."""

from typing import Annotated

import structlog
from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError

from bustrack.core.constants import DEFAULT_PAGE_SIZE
from bustrack.core.errors import NotFoundError, ValidationError
from bustrack.core.permissions.roles import Role
from bustrack.core.repository import Page
from bustrack.modules.users.models import User, UserResponse
from bustrack.modules.users.repos import UserRepo, UserRepository


logger = structlog.get_logger()


class UserService:
    """Service for user management operations.

    Every result is the public projection; password hashes never leave
    this layer.
    """

    def __init__(self, repo: UserRepository) -> None:
        self.repo = repo

    async def _get_or_raise(self, user_id: str) -> User:
        user = await self.repo.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", resource="user", resource_id=user_id)
        return user

    async def list_users(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        role: Role | None = None,
    ) -> Page[UserResponse]:
        """List users, optionally only those holding ``role``."""
        filters = {"role": role.value} if role else None
        result = await self.repo.list(page=page, page_size=page_size, filters=filters)
        return Page[UserResponse](
            items=[UserResponse.from_user(user) for user in result.items],
            page=result.page,
            page_size=result.page_size,
            total=result.total,
            total_pages=result.total_pages,
            has_more=result.has_more,
        )

    async def get_user(self, user_id: str) -> UserResponse:
        """Get a user by ID.

        Raises:
            NotFoundError: If the user doesn't exist
        """
        return UserResponse.from_user(await self._get_or_raise(user_id))

    async def update_user(
        self,
        user_id: str,
        name: str | None = None,
        role: Role | None = None,
    ) -> UserResponse:
        """Update a user's name and/or role.

        Raises:
            NotFoundError: If the user doesn't exist
            ValidationError: If the new name is not acceptable
        """
        user = await self._get_or_raise(user_id)

        changes: dict[str, object] = {}
        if name is not None:
            changes["name"] = name
        if role is not None:
            changes["role"] = role

        if changes:
            try:
                updated = User.model_validate({**user.model_dump(), **changes})
            except PydanticValidationError as exc:
                raise ValidationError.from_pydantic("Invalid user data", exc) from exc
            user = await self.repo.update(updated)
            logger.info("user_updated", user_id=user_id, fields=sorted(changes))

        return UserResponse.from_user(user)


async def get_user_service(repo: UserRepo) -> UserService:
    """Dependency that provides a UserService."""
    return UserService(repo)


UserSvc = Annotated[UserService, Depends(get_user_service)]
