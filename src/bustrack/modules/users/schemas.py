"""Pydantic schemas for user and authentication requests."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from bustrack.core.constants import MAX_NAME_LENGTH, MIN_NAME_LENGTH
from bustrack.core.permissions.roles import Role
from bustrack.modules.users.models import UserResponse


# ============================================================
# Authentication Schemas
# ============================================================


class RegisterRequest(BaseModel):
    """Schema for user registration.

    The password policy is enforced by the auth service so that every
    violated rule is reported together.
    """

    email: EmailStr
    name: str = Field(..., min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)
    password: str
    role: Role | None = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    """Schema for refreshing the token pair."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., min_length=1, alias="refreshToken")


class TokenResponse(BaseModel):
    """Schema for authentication token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiration in seconds")


class AuthResponse(TokenResponse):
    """Schema for register and login responses."""

    user: UserResponse


# ============================================================
# User Administration Schemas
# ============================================================


class UserUpdate(BaseModel):
    """Schema for updating a user. Email and password are not editable here."""

    name: str | None = Field(None, min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)
    role: Role | None = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v
