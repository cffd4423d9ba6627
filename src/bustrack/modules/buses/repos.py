"""Bus repository over the document store."""

from typing import Annotated

from fastapi import Depends

from bustrack.api.dependencies import AppSettings, Store
from bustrack.core.constants import BUSES_COLLECTION
from bustrack.core.errors import NotFoundError
from bustrack.core.repository import DocumentRepository, EntityMapping
from bustrack.core.store.base import DocumentStore
from bustrack.modules.buses.models import Bus, Position, normalize_license_plate


BUS_MAPPING = EntityMapping(
    model=Bus,
    collection=BUSES_COLLECTION,
    natural_key="license_plate",
    normalize_key=normalize_license_plate,
    resource="bus",
)


class BusRepository(DocumentRepository[Bus]):
    """Repository for buses, keyed naturally by normalized license plate."""

    def __init__(self, store: DocumentStore, timeout: float | None = None) -> None:
        super().__init__(store, BUS_MAPPING, timeout)

    async def find_by_license_plate(self, plate: str) -> Bus | None:
        """Get a bus by license plate, case-insensitively."""
        return await self.find_by_natural_key(plate)

    async def update_position(self, bus_id: str, position: Position) -> Bus:
        """Replace a bus's position.

        Raises:
            NotFoundError: If the bus doesn't exist
        """
        bus = await self.find_by_id(bus_id)
        if bus is None:
            raise NotFoundError("Bus not found", resource="bus", resource_id=bus_id)
        return await self.update(bus.model_copy(update={"position": position}))


async def get_bus_repo(store: Store, settings: AppSettings) -> BusRepository:
    """Dependency that provides a BusRepository."""
    return BusRepository(store, timeout=settings.store_timeout_seconds)


BusRepo = Annotated[BusRepository, Depends(get_bus_repo)]
