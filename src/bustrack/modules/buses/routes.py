"""Bus API routes.

Staff (supervisors and admins) can read buses and mark favorites; only
admins can create, edit, move or delete them.
"""

from typing import Annotated

from fastapi import APIRouter, Query, status

from bustrack.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from bustrack.core.permissions.gate import AdminIdentity, StaffIdentity
from bustrack.core.repository import Page
from bustrack.modules.buses.models import BusStatus
from bustrack.modules.buses.schemas import (
    BusCreate,
    BusResponse,
    BusSortField,
    BusUpdate,
    PositionUpdate,
    SortOrder,
)
from bustrack.modules.buses.services import BusSvc


router = APIRouter(prefix="/buses", tags=["buses"])


@router.get(
    "",
    response_model=Page[BusResponse],
    summary="List buses",
)
async def list_buses(
    _staff: StaffIdentity,
    service: BusSvc,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[
        int, Query(alias="pageSize", ge=1, le=MAX_PAGE_SIZE)
    ] = DEFAULT_PAGE_SIZE,
    bus_status: Annotated[BusStatus | None, Query(alias="status")] = None,
    route: str | None = None,
    is_favorite: Annotated[bool | None, Query(alias="isFavorite")] = None,
    sort: BusSortField = BusSortField.CREATED_AT,
    order: SortOrder = SortOrder.ASC,
) -> Page[BusResponse]:
    """List buses with pagination, filters and ordering."""
    return await service.list_buses(
        page=page,
        page_size=page_size,
        status=bus_status,
        route=route,
        is_favorite=is_favorite,
        sort=sort,
        order=order,
    )


@router.get(
    "/{bus_id}",
    response_model=BusResponse,
    summary="Get bus",
)
async def get_bus(bus_id: str, _staff: StaffIdentity, service: BusSvc) -> BusResponse:
    """Get a bus by ID."""
    return await service.get_bus(bus_id)


@router.post(
    "",
    response_model=BusResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create bus",
)
async def create_bus(
    data: BusCreate,
    _admin: AdminIdentity,
    service: BusSvc,
) -> BusResponse:
    """Create a bus. The license plate must not be in use."""
    return await service.create_bus(data)


@router.patch(
    "/{bus_id}",
    response_model=BusResponse,
    summary="Update bus",
)
async def update_bus(
    bus_id: str,
    data: BusUpdate,
    _admin: AdminIdentity,
    service: BusSvc,
) -> BusResponse:
    """Partially update a bus."""
    return await service.update_bus(bus_id, data)


@router.patch(
    "/{bus_id}/favorite",
    response_model=BusResponse,
    summary="Toggle favorite",
)
async def toggle_favorite(
    bus_id: str,
    _staff: StaffIdentity,
    service: BusSvc,
) -> BusResponse:
    """Flip the favorite flag of a bus."""
    return await service.toggle_favorite(bus_id)


@router.patch(
    "/{bus_id}/position",
    response_model=BusResponse,
    summary="Update bus position",
)
async def update_position(
    bus_id: str,
    data: PositionUpdate,
    _admin: AdminIdentity,
    service: BusSvc,
) -> BusResponse:
    """Set the current position of a bus."""
    return await service.update_position(bus_id, data.lat, data.lng)


@router.delete(
    "/{bus_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete bus",
)
async def delete_bus(bus_id: str, _admin: AdminIdentity, service: BusSvc) -> None:
    """Delete a bus."""
    await service.delete_bus(bus_id)
