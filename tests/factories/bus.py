"""Bus factory for tests."""

from uuid import uuid4

from polyfactory.factories.pydantic_factory import ModelFactory

from bustrack.modules.buses.models import Bus, BusStatus


class BusFactory(ModelFactory):
    """Factory for unsaved Bus entities with unique plates."""

    __model__ = Bus

    @classmethod
    def id(cls) -> None:
        """Assigned by the store."""
        return None

    @classmethod
    def license_plate(cls) -> str:
        """Generate a unique license plate."""
        return f"BUS-{uuid4().hex[:6].upper()}"

    @classmethod
    def unit_name(cls) -> str:
        return f"Unit {uuid4().hex[:4]}"

    @classmethod
    def status(cls) -> BusStatus:
        return BusStatus.PARKED

    @classmethod
    def route(cls) -> None:
        return None

    @classmethod
    def driver(cls) -> None:
        return None

    @classmethod
    def is_favorite(cls) -> bool:
        return False

    @classmethod
    def position(cls) -> None:
        return None

    @classmethod
    def created_at(cls) -> None:
        return None

    @classmethod
    def updated_at(cls) -> None:
        return None
