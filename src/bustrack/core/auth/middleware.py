"""Request identity and tracing middleware.

This module provides middleware for:
- Request tracing with unique IDs
- Binding the caller's identity into the log context
"""

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from bustrack.core.auth.dependencies import authenticate_optional


if TYPE_CHECKING:
    from starlette.types import ASGIApp


class IdentityContextMiddleware(BaseHTTPMiddleware):
    """Middleware that binds the optional caller identity to structlog.

    Authentication is not enforced here: routes still declare their own
    requirements. A missing or invalid token simply leaves the request
    anonymous for logging purposes.

    Attributes:
        exclude_paths: Paths that never carry an identity
    """

    def __init__(
        self,
        app: "ASGIApp",
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.exclude_paths = exclude_paths or [
            "/health",
            "/docs",
            "/redoc",
            "/openapi.json",
        ]

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process the request and bind identity context.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response from the handler
        """
        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return await call_next(request)

        tokens = getattr(request.app.state, "token_service", None)
        authorization = request.headers.get("Authorization")
        if tokens is not None and authorization:
            identity = authenticate_optional(authorization, tokens)
            if identity is not None:
                request.state.user_id = identity.id
                request.state.role = identity.role.value if identity.role else None
                structlog.contextvars.bind_contextvars(
                    user_id=identity.id,
                    role=request.state.role,
                )

        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that adds a unique request ID to each request.

    The request ID is added to:
    - request.state.request_id
    - Response header X-Request-ID
    - Structlog context
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process the request and add request ID.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response with X-Request-ID header
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        request.state.trace_id = request_id  # Alias for error handler

        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "user_id", "role")

        response.headers["X-Request-ID"] = request_id
        return response
