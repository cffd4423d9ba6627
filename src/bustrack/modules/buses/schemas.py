"""Pydantic schemas for bus requests and responses."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bustrack.core.constants import (
    MAX_LICENSE_PLATE_LENGTH,
    MAX_UNIT_NAME_LENGTH,
    MIN_LICENSE_PLATE_LENGTH,
)
from bustrack.modules.buses.models import BusStatus, Position


# Fields that a partial update may omit but never clear
NON_NULLABLE_FIELDS = frozenset(
    {"license_plate", "unit_name", "status", "moving_time", "parked_time", "is_favorite"}
)


class BusSortField(StrEnum):
    """Fields a bus listing can be ordered by."""

    CREATED_AT = "created_at"
    LICENSE_PLATE = "license_plate"
    UNIT_NAME = "unit_name"
    STATUS = "status"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


class BusCreate(BaseModel):
    """Schema for creating a bus."""

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

    @field_validator("license_plate", "unit_name", mode="before")
    @classmethod
    def strip(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class BusUpdate(BaseModel):
    """Schema for a partial bus update. At least one field must be given."""

    license_plate: str | None = Field(
        None,
        min_length=MIN_LICENSE_PLATE_LENGTH,
        max_length=MAX_LICENSE_PLATE_LENGTH,
    )
    unit_name: str | None = Field(None, min_length=1, max_length=MAX_UNIT_NAME_LENGTH)
    status: BusStatus | None = None
    route: str | None = None
    driver: str | None = None
    moving_time: int | None = Field(None, ge=0)
    parked_time: int | None = Field(None, ge=0)
    is_favorite: bool | None = None
    position: Position | None = None

    @field_validator("license_plate", "unit_name", mode="before")
    @classmethod
    def strip(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def at_least_one_field(self) -> "BusUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        for name in self.model_fields_set & NON_NULLABLE_FIELDS:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PositionUpdate(Position):
    """Schema for updating a bus's position."""


class BusResponse(BaseModel):
    """Schema for bus response data."""

    id: str
    license_plate: str
    unit_name: str
    status: BusStatus
    route: str | None = None
    driver: str | None = None
    moving_time: int
    parked_time: int
    is_favorite: bool
    position: Position | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
