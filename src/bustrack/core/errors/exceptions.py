"""Domain exceptions for the application.

Every exception carries a machine-readable ``error_code`` drawn from
``ErrorKind`` so callers can branch on the kind of failure without parsing
messages. The mapping from kinds to HTTP status codes lives in the exception
handlers, not here.
"""

from enum import StrEnum
from typing import Any

from pydantic import ValidationError as PydanticValidationError


class ErrorKind(StrEnum):
    """Closed set of failure kinds surfaced by the core."""

    INTERNAL = "internal_error"
    STORE_UNAVAILABLE = "store_unavailable"

    # Credential presentation
    NO_TOKEN = "no_token"
    BAD_SCHEME = "bad_scheme"
    EMPTY_TOKEN = "empty_token"
    UNAUTHENTICATED = "unauthenticated"

    # Token verification
    TOKEN_EXPIRED = "token_expired"
    TOKEN_INVALID = "token_invalid"

    # Login
    INVALID_CREDENTIALS = "invalid_credentials"

    # Authorization
    NO_ROLE = "no_role"
    WRONG_ROLE = "wrong_role"

    # Repository
    NOT_FOUND = "not_found"
    DUPLICATE_KEY = "duplicate_key"
    VALIDATION = "validation_error"


class AppException(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error message, for logs and diagnostics
        error_code: Machine-readable failure kind
        details: Additional structured error details
    """

    message: str = "An unexpected error occurred"
    error_code: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorKind | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class UnauthorizedError(AppException):
    """Raised when credentials are missing or malformed.

    Example:
        raise UnauthorizedError("Token is missing", error_code=ErrorKind.EMPTY_TOKEN)
    """

    message = "Authentication required"
    error_code = ErrorKind.UNAUTHENTICATED


class TokenExpiredError(UnauthorizedError):
    """Raised when a token has a valid signature but its ``exp`` has passed."""

    message = "Token has expired"
    error_code = ErrorKind.TOKEN_EXPIRED


class TokenInvalidError(UnauthorizedError):
    """Raised when a token is malformed, forged, or of the wrong type."""

    message = "Token is invalid"
    error_code = ErrorKind.TOKEN_INVALID


class InvalidCredentialsError(UnauthorizedError):
    """Raised on failed login.

    The message is identical whether the email is unknown or the password is
    wrong.
    """

    message = "Invalid email or password"
    error_code = ErrorKind.INVALID_CREDENTIALS


class ForbiddenError(AppException):
    """Raised when an authenticated caller lacks the required role.

    Example:
        raise ForbiddenError(
            "User role is not defined",
            error_code=ErrorKind.NO_ROLE,
        )
    """

    message = "Access forbidden"
    error_code = ErrorKind.WRONG_ROLE


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("Bus not found", resource="bus", resource_id=bus_id)
    """

    message = "Resource not found"
    error_code = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when a natural key is already taken.

    Example:
        raise ConflictError(
            "User with this email already exists",
            details={"field": "email", "value": email},
        )
    """

    message = "Resource conflict"
    error_code = ErrorKind.DUPLICATE_KEY


class ValidationError(AppException):
    """Raised when data fails a check performed inside the core.

    Example:
        raise ValidationError(
            "Password does not meet the policy",
            errors=[{"field": "password", "message": "..."}],
        )
    """

    message = "Validation error"
    error_code = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        self.errors = errors or []
        super().__init__(message=message, details=details, **kwargs)

    @classmethod
    def from_pydantic(
        cls, message: str, exc: PydanticValidationError
    ) -> "ValidationError":
        """Build from a pydantic error, one field error per failed field."""
        return cls(
            message,
            errors=[
                {
                    "field": ".".join(str(part) for part in error["loc"]) or "unknown",
                    "message": error["msg"],
                }
                for error in exc.errors()
            ],
        )


class StoreError(AppException):
    """Raised when the document store fails in an unexpected way.

    Wraps connectivity errors, timeouts, and documents that no longer
    map onto their entity.
    """

    message = "Document store error"
    error_code = ErrorKind.INTERNAL
