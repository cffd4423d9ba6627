"""JWT issuance and verification for access and refresh tokens.

Both token variants are HS256 JWTs carrying the same subject claims. They are
told apart by a ``type`` claim that every verification checks, and refresh
tokens can additionally be signed with their own secret. Verification never
touches the store: validity is signature, issuer, audience, type and expiry.
"""

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from bustrack.core.auth.schemas import (
    IdentityContext,
    TokenPair,
    TokenSubject,
    TokenType,
)
from bustrack.core.constants import ACCESS_TOKEN_JTI_LENGTH, JWT_AUDIENCE, JWT_ISSUER
from bustrack.core.errors.exceptions import TokenExpiredError, TokenInvalidError
from bustrack.core.permissions.roles import Role


if TYPE_CHECKING:
    from bustrack.config import Settings


@dataclass(frozen=True)
class TokenConfig:
    """Signing configuration injected into TokenService.

    Attributes:
        secret_key: Secret for access tokens (and refresh tokens by default)
        refresh_secret_key: Optional separate secret for refresh tokens
        algorithm: JWT signing algorithm
        issuer: Value of the ``iss`` claim
        audience: Value of the ``aud`` claim
        access_ttl: Access token lifetime
        refresh_ttl: Refresh token lifetime
        leeway: Clock skew tolerated when checking ``exp``
    """

    secret_key: str
    refresh_secret_key: str | None = None
    algorithm: str = "HS256"
    issuer: str = JWT_ISSUER
    audience: str = JWT_AUDIENCE
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    leeway: timedelta = timedelta(0)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenConfig":
        """Build the token configuration from application settings."""
        return cls(
            secret_key=settings.secret_key,
            refresh_secret_key=settings.refresh_secret_key,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
            leeway=timedelta(seconds=settings.token_leeway_seconds),
        )


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """Issues and verifies signed access and refresh tokens.

    The service is stateless: every call is a pure function of the token,
    the current time and the injected configuration.
    """

    def __init__(
        self,
        config: TokenConfig,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self._clock = clock

    # ============================================================
    # Issuance
    # ============================================================

    def issue_access(self, subject: TokenSubject, now: datetime | None = None) -> str:
        """Create a short-lived access token.

        Args:
            subject: The user fields to embed
            now: Issue time, defaults to the service clock

        Returns:
            Encoded JWT access token
        """
        return self._issue(subject, TokenType.ACCESS, now)

    def issue_refresh(self, subject: TokenSubject, now: datetime | None = None) -> str:
        """Create a long-lived refresh token.

        Args:
            subject: The user fields to embed
            now: Issue time, defaults to the service clock

        Returns:
            Encoded JWT refresh token
        """
        return self._issue(subject, TokenType.REFRESH, now)

    def issue_pair(self, subject: TokenSubject, now: datetime | None = None) -> TokenPair:
        """Create an access and refresh token for the same subject."""
        now = now or self._clock()
        return TokenPair(
            access_token=self.issue_access(subject, now),
            refresh_token=self.issue_refresh(subject, now),
            expires_in=int(self.config.access_ttl.total_seconds()),
        )

    # ============================================================
    # Verification
    # ============================================================

    def verify_access(self, token: str, now: datetime | None = None) -> IdentityContext:
        """Verify an access token and return its claims.

        Raises:
            TokenExpiredError: If the signature is valid but ``exp`` has passed
            TokenInvalidError: If the token is malformed, forged, issued for
                another issuer/audience, or is a refresh token
        """
        return self._verify(token, TokenType.ACCESS, now)

    def verify_refresh(self, token: str, now: datetime | None = None) -> IdentityContext:
        """Verify a refresh token and return its claims.

        Raises:
            TokenExpiredError: If the signature is valid but ``exp`` has passed
            TokenInvalidError: If the token is malformed, forged, issued for
                another issuer/audience, or is an access token
        """
        return self._verify(token, TokenType.REFRESH, now)

    # ============================================================
    # Internals
    # ============================================================

    def _secret_for(self, token_type: TokenType) -> str:
        if token_type is TokenType.REFRESH and self.config.refresh_secret_key:
            return self.config.refresh_secret_key
        return self.config.secret_key

    def _ttl_for(self, token_type: TokenType) -> timedelta:
        if token_type is TokenType.REFRESH:
            return self.config.refresh_ttl
        return self.config.access_ttl

    def _issue(
        self,
        subject: TokenSubject,
        token_type: TokenType,
        now: datetime | None,
    ) -> str:
        issued_at = now or self._clock()
        expires_at = issued_at + self._ttl_for(token_type)

        to_encode: dict[str, Any] = {
            "sub": subject.id,
            "id": subject.id,
            "email": subject.email,
            "role": subject.role.value if subject.role else None,
            "type": token_type.value,
            "iss": self.config.issuer,
            "aud": self.config.audience,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),
        }

        return jwt.encode(
            to_encode,
            self._secret_for(token_type),
            algorithm=self.config.algorithm,
        )

    def _verify(
        self,
        token: str,
        expected_type: TokenType,
        now: datetime | None,
    ) -> IdentityContext:
        label = expected_type.value.capitalize()

        if not isinstance(token, str) or not token.strip():
            raise TokenInvalidError("Token must be a non-empty string")

        try:
            # Expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                self._secret_for(expected_type),
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise TokenInvalidError(f"{label} token is invalid or malformed") from exc

        if payload.get("type") != expected_type.value:
            raise TokenInvalidError(f"Expected a {expected_type.value} token")

        exp = payload.get("exp")
        if not isinstance(exp, int):
            raise TokenInvalidError(f"{label} token has no expiry")

        current = int((now or self._clock()).timestamp())
        if current > exp + int(self.config.leeway.total_seconds()):
            raise TokenExpiredError(f"{label} token has expired")

        try:
            return IdentityContext(
                id=payload["id"],
                email=payload["email"],
                role=Role.parse(payload.get("role")),
                type=expected_type,
                iss=payload["iss"],
                aud=payload["aud"],
                iat=payload["iat"],
                exp=exp,
                jti=payload.get("jti"),
            )
        except (KeyError, ValueError, PydanticValidationError) as exc:
            raise TokenInvalidError(f"{label} token claims are incomplete") from exc
