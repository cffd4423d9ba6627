"""FastAPI dependencies for authentication.

This module provides:
- Bearer token extraction from the Authorization header
- Required authentication, failing with a typed 401 kind
- Optional authentication, falling back to an anonymous caller
"""

from datetime import datetime
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from bustrack.api.dependencies import Tokens
from bustrack.core.auth.schemas import IdentityContext
from bustrack.core.auth.tokens import TokenService
from bustrack.core.constants import BEARER_PREFIX
from bustrack.core.errors import (
    ErrorKind,
    TokenExpiredError,
    UnauthorizedError,
)


# Raw Authorization header; the scheme is checked here rather than by FastAPI
authorization_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="Bearer access token",
)


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    Args:
        authorization: Raw header value, or None if absent

    Returns:
        The token string

    Raises:
        UnauthorizedError: ``no_token``, ``bad_scheme`` or ``empty_token``
    """
    if authorization is None or not authorization.strip():
        raise UnauthorizedError(
            "Authorization header is required",
            error_code=ErrorKind.NO_TOKEN,
        )

    header = authorization.strip()
    if header == BEARER_PREFIX.strip():
        raise UnauthorizedError("Token is missing", error_code=ErrorKind.EMPTY_TOKEN)

    if not header.startswith(BEARER_PREFIX):
        raise UnauthorizedError(
            "Authorization header must be in format: Bearer <token>",
            error_code=ErrorKind.BAD_SCHEME,
        )

    token = header[len(BEARER_PREFIX) :].strip()
    if not token:
        raise UnauthorizedError("Token is missing", error_code=ErrorKind.EMPTY_TOKEN)

    return token


def authenticate(
    authorization: str | None,
    tokens: TokenService,
    now: datetime | None = None,
) -> IdentityContext:
    """Verify the access token carried by an Authorization header.

    Raises:
        UnauthorizedError: If the header is missing or malformed
        TokenExpiredError: If the access token has expired
        TokenInvalidError: If the access token does not verify
    """
    token = extract_bearer_token(authorization)
    try:
        return tokens.verify_access(token, now)
    except TokenExpiredError as exc:
        raise TokenExpiredError("Token has expired. Please login again.") from exc


def authenticate_optional(
    authorization: str | None,
    tokens: TokenService,
    now: datetime | None = None,
) -> IdentityContext | None:
    """Like ``authenticate``, but any failure yields an anonymous caller."""
    try:
        return authenticate(authorization, tokens, now)
    except UnauthorizedError:
        return None


async def get_identity(
    request: Request,
    tokens: Tokens,
    authorization: Annotated[str | None, Depends(authorization_header)],
) -> IdentityContext:
    """Require an authenticated caller.

    The verified identity is attached to ``request.state.identity``.

    Raises:
        UnauthorizedError: If authentication fails, with the failure kind
    """
    identity = authenticate(authorization, tokens)
    request.state.identity = identity
    request.state.user_id = identity.id
    return identity


async def get_optional_identity(
    request: Request,
    tokens: Tokens,
    authorization: Annotated[str | None, Depends(authorization_header)],
) -> IdentityContext | None:
    """Return the authenticated caller, or None for anonymous requests."""
    identity = authenticate_optional(authorization, tokens)
    request.state.identity = identity
    if identity is not None:
        request.state.user_id = identity.id
    return identity


# Type aliases for cleaner dependency injection
CurrentIdentity = Annotated[IdentityContext, Depends(get_identity)]
OptionalIdentity = Annotated[IdentityContext | None, Depends(get_optional_identity)]
