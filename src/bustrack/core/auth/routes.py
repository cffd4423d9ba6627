"""Authentication API routes.

Provides endpoints for:
- User registration
- Login
- Token refresh
- The current caller's profile
"""

from fastapi import APIRouter, status

from bustrack.core.auth.dependencies import CurrentIdentity
from bustrack.core.auth.service import AuthResult, AuthSvc
from bustrack.modules.users.models import UserResponse
from bustrack.modules.users.schemas import (
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)


router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=result.user,
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        expires_in=result.tokens.expires_in,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Creates a user account and signs it in. The role defaults to supervisor.",
)
async def register(data: RegisterRequest, service: AuthSvc) -> AuthResponse:
    """Register a new user."""
    result = await service.register(
        email=data.email,
        name=data.name,
        password=data.password,
        role=data.role,
    )
    return _auth_response(result)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login with email and password",
    description="Authenticate with email and password to receive access and refresh tokens.",
)
async def login(data: LoginRequest, service: AuthSvc) -> AuthResponse:
    """Login with email and password."""
    result = await service.login(email=data.email, password=data.password)
    return _auth_response(result)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh tokens",
    description="Exchange a refresh token for a new access and refresh token pair.",
)
async def refresh_token(data: RefreshTokenRequest, service: AuthSvc) -> TokenResponse:
    """Refresh the token pair."""
    tokens = service.refresh(data.refresh_token)
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
    description="Returns the profile of the authenticated caller.",
)
async def me(identity: CurrentIdentity, service: AuthSvc) -> UserResponse:
    """Get the current user's profile."""
    return await service.get_by_id(identity.id)
