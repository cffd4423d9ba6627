"""Error handling module with RFC 7807 Problem Details."""

from bustrack.core.errors.exceptions import (
    AppException,
    ConflictError,
    ErrorKind,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    StoreError,
    TokenExpiredError,
    TokenInvalidError,
    UnauthorizedError,
    ValidationError,
)
from bustrack.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
    status_for,
)


__all__ = [
    # Exceptions
    "AppException",
    "ConflictError",
    "ErrorKind",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "InvalidCredentialsError",
    "NotFoundError",
    "ProblemDetail",
    "StoreError",
    "TokenExpiredError",
    "TokenInvalidError",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
    "status_for",
]
