"""User entity and its public projection."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bustrack.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH, MIN_NAME_LENGTH
from bustrack.core.permissions.roles import Role


def normalize_email(email: str) -> str:
    """Canonical form of an email: trimmed and lowercased."""
    return email.strip().lower()


class User(BaseModel):
    """A staff member who can sign in.

    ``email`` is unique across users in its normalized form. Users are never
    hard-deleted through the API.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str | None = None
    email: str = Field(..., min_length=3, max_length=MAX_EMAIL_LENGTH)
    name: str = Field(..., min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)
    role: Role = Role.SUPERVISOR
    password_hash: str = Field(..., repr=False)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: object) -> object:
        return normalize_email(v) if isinstance(v, str) else v

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class UserResponse(BaseModel):
    """Public projection of a user. Never carries the password hash."""

    id: str
    email: str
    name: str
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls.model_validate(user)
