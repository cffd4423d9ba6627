"""Authentication service for registration, login and token refresh."""

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

import structlog
from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError

from bustrack.api.dependencies import Hasher, Tokens
from bustrack.core.auth.passwords import PasswordHasher, password_policy_violations
from bustrack.core.auth.schemas import TokenPair, TokenSubject
from bustrack.core.auth.tokens import TokenService
from bustrack.core.errors import (
    ConflictError,
    ErrorKind,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from bustrack.core.permissions.roles import Role
from bustrack.modules.users.models import User, UserResponse, normalize_email
from bustrack.modules.users.repos import UserRepo, UserRepository


logger = structlog.get_logger()

# Stands in for the real hash while registration input is validated
PENDING_HASH = "!"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful register or login.

    Attributes:
        user: Public projection of the signed-in user
        tokens: Freshly issued access and refresh tokens
    """

    user: UserResponse
    tokens: TokenPair


class AuthService:
    """Service for authentication operations.

    Handles user registration, login, and token refresh. Refresh is pure
    token work and never reads the store.
    """

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
    ) -> None:
        self.users = users
        self.hasher = hasher
        self.tokens = tokens

    async def register(
        self,
        email: str,
        name: str,
        password: str,
        role: Role | None = None,
    ) -> AuthResult:
        """Register a new user and sign them in.

        Args:
            email: Email address, in any case
            name: Display name
            password: Plain text password
            role: Role to grant, supervisor when omitted

        Returns:
            The created user and a token pair

        Raises:
            ValidationError: If the password violates the policy, or the
                email or name is not acceptable
            ConflictError: If the email is already registered
        """
        email = normalize_email(email)

        violations = password_policy_violations(password)
        if violations:
            raise ValidationError(
                "Password does not meet the requirements",
                errors=[{"field": "password", "message": msg} for msg in violations],
            )

        # Validated before hashing; the real hash is set below
        try:
            user = User(
                email=email,
                name=name,
                role=role or Role.SUPERVISOR,
                password_hash=PENDING_HASH,
            )
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic("Invalid registration data", exc) from exc

        if await self.users.find_by_email(email) is not None:
            raise ConflictError(
                "Email already in use",
                error_code=ErrorKind.DUPLICATE_KEY,
                details={"field": "email", "value": email},
            )

        user.password_hash = self.hasher.hash(password)
        user = await self.users.create(user)

        logger.info("user_registered", user_id=user.id, role=user.role.value)
        return self._sign_in(user)

    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password.

        Raises:
            InvalidCredentialsError: For an unknown email or a wrong password,
                indistinguishably
        """
        user = await self.users.find_by_email(email)

        if user is None:
            # Spend the same bcrypt time as a real check
            self.hasher.dummy_verify()
            logger.warning("login_failed")
            raise InvalidCredentialsError()

        if not self.hasher.verify(password, user.password_hash):
            logger.warning("login_failed")
            raise InvalidCredentialsError()

        logger.info("login_succeeded", user_id=user.id)
        return self._sign_in(user)

    def refresh(self, refresh_token: str, now: datetime | None = None) -> TokenPair:
        """Exchange a refresh token for a new token pair.

        The user is not re-read: the new pair carries the subject claims of
        the presented token.

        Raises:
            TokenExpiredError: If the refresh token has expired
            TokenInvalidError: If it does not verify as a refresh token
        """
        identity = self.tokens.verify_refresh(refresh_token, now)
        logger.info("tokens_refreshed", user_id=identity.id)
        return self.tokens.issue_pair(identity.subject(), now)

    async def get_by_id(self, user_id: str) -> UserResponse:
        """Get a user's public projection by ID.

        Raises:
            NotFoundError: If no user has this ID
        """
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", resource="user", resource_id=user_id)
        return UserResponse.from_user(user)

    async def get_by_email(self, email: str) -> UserResponse:
        """Get a user's public projection by email.

        Raises:
            NotFoundError: If no user has this email
        """
        user = await self.users.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found", resource="user")
        return UserResponse.from_user(user)

    def _sign_in(self, user: User) -> AuthResult:
        subject = TokenSubject(id=str(user.id), email=user.email, role=user.role)
        return AuthResult(
            user=UserResponse.from_user(user),
            tokens=self.tokens.issue_pair(subject),
        )


async def get_auth_service(
    users: UserRepo,
    hasher: Hasher,
    tokens: Tokens,
) -> AuthService:
    """Dependency that provides an AuthService."""
    return AuthService(users, hasher, tokens)


AuthSvc = Annotated[AuthService, Depends(get_auth_service)]
