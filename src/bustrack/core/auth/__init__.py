"""Authentication: password hashing, JWT tokens and request identity."""

from bustrack.core.auth.passwords import PasswordHasher
from bustrack.core.auth.schemas import IdentityContext, TokenPair, TokenSubject, TokenType
from bustrack.core.auth.tokens import TokenConfig, TokenService


__all__ = [
    "IdentityContext",
    "PasswordHasher",
    "TokenConfig",
    "TokenPair",
    "TokenService",
    "TokenSubject",
    "TokenType",
]
