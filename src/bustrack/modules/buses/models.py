"""Bus entity and value types."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bustrack.core.constants import (
    MAX_LATITUDE,
    MAX_LICENSE_PLATE_LENGTH,
    MAX_LONGITUDE,
    MAX_UNIT_NAME_LENGTH,
    MIN_LATITUDE,
    MIN_LICENSE_PLATE_LENGTH,
    MIN_LONGITUDE,
)


def normalize_license_plate(plate: str) -> str:
    """Canonical form of a license plate: trimmed and uppercased."""
    return plate.strip().upper()


class BusStatus(StrEnum):
    """Operational state of a bus."""

    PARKED = "parked"
    MOVING = "moving"
    MAINTENANCE = "maintenance"


class Position(BaseModel):
    """A WGS84 coordinate. Both components are always present."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=MIN_LATITUDE, le=MAX_LATITUDE)
    lng: float = Field(..., ge=MIN_LONGITUDE, le=MAX_LONGITUDE)


class Bus(BaseModel):
    """A tracked vehicle.

    ``license_plate`` is unique across buses in its normalized form.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str | None = None
    license_plate: str = Field(
        ...,
        min_length=MIN_LICENSE_PLATE_LENGTH,
        max_length=MAX_LICENSE_PLATE_LENGTH,
    )
    unit_name: str = Field(..., min_length=1, max_length=MAX_UNIT_NAME_LENGTH)
    status: BusStatus = BusStatus.PARKED
    route: str | None = None
    driver: str | None = None
    moving_time: int = Field(0, ge=0)
    parked_time: int = Field(0, ge=0)
    is_favorite: bool = False
    position: Position | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("license_plate", mode="before")
    @classmethod
    def _normalize_plate(cls, v: object) -> object:
        return normalize_license_plate(v) if isinstance(v, str) else v

    @field_validator("unit_name", mode="before")
    @classmethod
    def _strip_unit_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v
