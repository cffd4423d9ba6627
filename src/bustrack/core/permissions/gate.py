"""Role-based authorization gate.

``require_role`` builds a guard that admits an identity whose role is in an
allowed set. Guards are plain callables so they can be used directly or
wrapped as FastAPI dependencies.
"""

from collections.abc import Callable
from typing import Annotated

import structlog
from fastapi import Depends

from bustrack.core.auth.dependencies import get_identity
from bustrack.core.auth.schemas import IdentityContext
from bustrack.core.errors import ErrorKind, ForbiddenError, UnauthorizedError
from bustrack.core.permissions.roles import Role


logger = structlog.get_logger()

Guard = Callable[[IdentityContext | None], IdentityContext]


def check_role(
    identity: IdentityContext | None,
    allowed_roles: frozenset[Role],
) -> IdentityContext:
    """Admit ``identity`` if its role is one of ``allowed_roles``.

    Raises:
        UnauthorizedError: If there is no identity at all
        ForbiddenError: ``no_role`` if the identity has no role,
            ``wrong_role`` if its role is not allowed
    """
    if identity is None:
        raise UnauthorizedError(
            "Authentication required before authorization",
        )

    if identity.role is None:
        logger.warning("access_denied", user_id=identity.id, reason="no_role")
        raise ForbiddenError("User role is not defined", error_code=ErrorKind.NO_ROLE)

    if identity.role not in allowed_roles:
        required = sorted(role.value for role in allowed_roles)
        logger.warning(
            "access_denied",
            user_id=identity.id,
            role=identity.role.value,
            required_roles=required,
            reason="wrong_role",
        )
        raise ForbiddenError(
            f"Access denied. Required role(s): {', '.join(required)}. "
            f"Your role: {identity.role.value}",
            error_code=ErrorKind.WRONG_ROLE,
            details={"required_roles": required, "actual_role": identity.role.value},
        )

    return identity


def require_role(*allowed_roles: Role) -> Guard:
    """Build a guard admitting any of ``allowed_roles``.

    Example:
        guard = require_role(Role.ADMIN)
        identity = guard(identity)
    """
    if not allowed_roles:
        raise ValueError("require_role needs at least one role")
    allowed = frozenset(allowed_roles)

    def guard(identity: IdentityContext | None) -> IdentityContext:
        return check_role(identity, allowed)

    return guard


require_admin = require_role(Role.ADMIN)
require_supervisor_or_admin = require_role(Role.SUPERVISOR, Role.ADMIN)


def role_dependency(guard: Guard) -> Callable[..., IdentityContext]:
    """Wrap a guard as a FastAPI dependency that authenticates first."""

    async def dependency(
        identity: Annotated[IdentityContext, Depends(get_identity)],
    ) -> IdentityContext:
        return guard(identity)

    return dependency


# Type aliases for route protection
AdminIdentity = Annotated[IdentityContext, Depends(role_dependency(require_admin))]
StaffIdentity = Annotated[
    IdentityContext, Depends(role_dependency(require_supervisor_or_admin))
]
