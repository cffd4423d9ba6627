"""Structured request logging."""

from bustrack.core.logging.middleware import (
    RequestLoggingMiddleware,
    caller_kind,
    route_template,
)


__all__ = ["RequestLoggingMiddleware", "caller_kind", "route_template"]
