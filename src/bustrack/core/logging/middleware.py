"""Access logging for API requests.

One ``request_completed`` event is written per request. It names the matched
route template (``/api/v1/buses/{bus_id}``) rather than the raw path, the kind
of caller, and for failed requests the ``error_code`` chosen by the exception
handlers, so logs can be grouped the same way clients branch on errors.
"""

import time
from typing import TYPE_CHECKING, Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


if TYPE_CHECKING:
    from starlette.types import ASGIApp


logger = structlog.get_logger()

ANONYMOUS = "anonymous"
UNASSIGNED = "unassigned"


def caller_kind(request: Request) -> str:
    """Who made the request: a role name, ``unassigned`` or ``anonymous``.

    Reads what ``IdentityContextMiddleware`` attached to the request.
    """
    if getattr(request.state, "user_id", None) is None:
        return ANONYMOUS
    return getattr(request.state, "role", None) or UNASSIGNED


def route_template(request: Request) -> str:
    """Path template of the matched route, or the raw path if none matched."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Write an access log event for every API request.

    Successful requests log at info, 4xx at warning and 5xx at error.
    Health probes and the docs are skipped.
    """

    def __init__(
        self,
        app: "ASGIApp",
        exclude_prefixes: tuple[str, ...] = ("/health", "/docs", "/redoc", "/openapi.json"),
    ) -> None:
        super().__init__(app)
        self.exclude_prefixes = exclude_prefixes

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path.startswith(self.exclude_prefixes):
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                method=request.method,
                route=route_template(request),
                caller=caller_kind(request),
                duration_ms=_elapsed_ms(started),
            )
            raise

        event: dict[str, Any] = {
            "method": request.method,
            "route": route_template(request),
            "status_code": response.status_code,
            "caller": caller_kind(request),
            "duration_ms": _elapsed_ms(started),
        }
        error_code = getattr(request.state, "error_code", None)
        if error_code is not None:
            event["error_code"] = str(error_code)

        if response.status_code >= 500:
            logger.error("request_completed", **event)
        elif response.status_code >= 400:
            logger.warning("request_completed", **event)
        else:
            logger.info("request_completed", **event)

        return response
