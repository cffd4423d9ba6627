"""Bus service for fleet operations."""

from typing import Annotated

import structlog
from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError

from bustrack.core.constants import DEFAULT_PAGE_SIZE
from bustrack.core.errors import NotFoundError, ValidationError
from bustrack.core.repository import Page
from bustrack.core.store.base import Sort
from bustrack.modules.buses.models import Bus, BusStatus, Position
from bustrack.modules.buses.repos import BusRepo, BusRepository
from bustrack.modules.buses.schemas import (
    BusCreate,
    BusResponse,
    BusSortField,
    BusUpdate,
    SortOrder,
)


logger = structlog.get_logger()


class BusService:
    """Service for bus listing and editing."""

    def __init__(self, repo: BusRepository) -> None:
        self.repo = repo

    async def _get_or_raise(self, bus_id: str) -> Bus:
        bus = await self.repo.find_by_id(bus_id)
        if bus is None:
            raise NotFoundError("Bus not found", resource="bus", resource_id=bus_id)
        return bus

    async def list_buses(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        status: BusStatus | None = None,
        route: str | None = None,
        is_favorite: bool | None = None,
        sort: BusSortField = BusSortField.CREATED_AT,
        order: SortOrder = SortOrder.ASC,
    ) -> Page[BusResponse]:
        """List buses with optional exact-match filters and ordering."""
        filters = {
            "status": status.value if status else None,
            "route": route,
            "is_favorite": is_favorite,
        }
        result = await self.repo.list(
            page=page,
            page_size=page_size,
            filters=filters,
            sort=Sort(field=sort.value, descending=order is SortOrder.DESC),
        )
        return Page[BusResponse](
            items=[BusResponse.model_validate(bus) for bus in result.items],
            page=result.page,
            page_size=result.page_size,
            total=result.total,
            total_pages=result.total_pages,
            has_more=result.has_more,
        )

    async def get_bus(self, bus_id: str) -> BusResponse:
        """Get a bus by ID.

        Raises:
            NotFoundError: If the bus doesn't exist
        """
        return BusResponse.model_validate(await self._get_or_raise(bus_id))

    async def create_bus(self, data: BusCreate) -> BusResponse:
        """Create a bus.

        Raises:
            ConflictError: If the license plate is already in use
        """
        bus = await self.repo.create(Bus.model_validate(data.model_dump()))
        logger.info("bus_created", bus_id=bus.id, license_plate=bus.license_plate)
        return BusResponse.model_validate(bus)

    async def update_bus(self, bus_id: str, data: BusUpdate) -> BusResponse:
        """Apply a partial update to a bus.

        Only fields present in ``data`` change. A new license plate is not
        checked against other buses.

        Raises:
            NotFoundError: If the bus doesn't exist
            ValidationError: If the merged bus breaks the model constraints
        """
        bus = await self._get_or_raise(bus_id)
        changes = data.model_dump(include=data.model_fields_set)

        try:
            updated = Bus.model_validate({**bus.model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic("Invalid bus data", exc) from exc
        bus = await self.repo.update(updated)

        logger.info("bus_updated", bus_id=bus_id, fields=sorted(changes))
        return BusResponse.model_validate(bus)

    async def toggle_favorite(self, bus_id: str) -> BusResponse:
        """Flip a bus's favorite flag.

        Raises:
            NotFoundError: If the bus doesn't exist
        """
        bus = await self._get_or_raise(bus_id)
        bus = await self.repo.update(
            bus.model_copy(update={"is_favorite": not bus.is_favorite})
        )
        return BusResponse.model_validate(bus)

    async def update_position(self, bus_id: str, lat: float, lng: float) -> BusResponse:
        """Move a bus to ``(lat, lng)``.

        Raises:
            NotFoundError: If the bus doesn't exist
        """
        bus = await self.repo.update_position(bus_id, Position(lat=lat, lng=lng))
        return BusResponse.model_validate(bus)

    async def delete_bus(self, bus_id: str) -> None:
        """Delete a bus.

        Raises:
            NotFoundError: If the bus doesn't exist
        """
        await self.repo.remove(bus_id)
        logger.info("bus_deleted", bus_id=bus_id)


async def get_bus_service(repo: BusRepo) -> BusService:
    """Dependency that provides a BusService."""
    return BusService(repo)


BusSvc = Annotated[BusService, Depends(get_bus_service)]
