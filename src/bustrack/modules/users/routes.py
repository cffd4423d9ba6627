"""User administration API routes. Admin only."""

from typing import Annotated

from fastapi import APIRouter, Query

from bustrack.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from bustrack.core.permissions.gate import AdminIdentity
from bustrack.core.permissions.roles import Role
from bustrack.core.repository import Page
from bustrack.modules.users.models import UserResponse
from bustrack.modules.users.schemas import UserUpdate
from bustrack.modules.users.services import UserSvc


router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=Page[UserResponse],
    summary="List users",
)
async def list_users(
    _admin: AdminIdentity,
    service: UserSvc,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[
        int, Query(alias="pageSize", ge=1, le=MAX_PAGE_SIZE)
    ] = DEFAULT_PAGE_SIZE,
    role: Role | None = None,
) -> Page[UserResponse]:
    """List users, optionally filtered by role."""
    return await service.list_users(page=page, page_size=page_size, role=role)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user",
)
async def get_user(
    user_id: str,
    _admin: AdminIdentity,
    service: UserSvc,
) -> UserResponse:
    """Get a user by ID."""
    return await service.get_user(user_id)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
)
async def update_user(
    user_id: str,
    data: UserUpdate,
    _admin: AdminIdentity,
    service: UserSvc,
) -> UserResponse:
    """Update a user's name or role."""
    return await service.update_user(user_id, name=data.name, role=data.role)
