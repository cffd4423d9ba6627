"""Authentication schemas for token handling."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from bustrack.core.permissions.roles import Role


class TokenType(StrEnum):
    """Value of the ``type`` claim that separates the two token variants."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenSubject(BaseModel):
    """The subset of user fields embedded in every token.

    Attributes:
        id: The user's store-assigned ID
        email: The user's normalized email
        role: The user's role, if any
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    role: Role | None = None


class IdentityContext(TokenSubject):
    """Decoded claims of a verified token.

    Attached to a request after successful authentication and never persisted.

    Attributes:
        type: Token variant the claims were read from
        iss: Issuer claim
        aud: Audience claim
        iat: Issued-at, seconds since the epoch
        exp: Expiry, seconds since the epoch
        jti: Unique token ID
    """

    type: TokenType
    iss: str
    aud: str
    iat: int
    exp: int
    jti: str | None = None

    def subject(self) -> TokenSubject:
        """Return the subject fields, for minting a new token pair."""
        return TokenSubject(id=self.id, email=self.email, role=self.role)


class TokenPair(BaseModel):
    """A pair of access and refresh tokens.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Long-lived JWT for getting new token pairs
        token_type: Always "bearer"
        expires_in: Access token lifetime in seconds
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
