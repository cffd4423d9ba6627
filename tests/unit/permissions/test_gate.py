"""Unit tests for the role-based authorization gate."""

import pytest

from bustrack.core.auth.schemas import IdentityContext, TokenType
from bustrack.core.errors import ErrorKind, ForbiddenError, UnauthorizedError
from bustrack.core.permissions.gate import (
    require_admin,
    require_role,
    require_supervisor_or_admin,
    role_dependency,
)
from bustrack.core.permissions.roles import Role


pytestmark = pytest.mark.unit


def make_identity(role: Role | None) -> IdentityContext:
    """Helper to create an IdentityContext for tests."""
    return IdentityContext(
        id="user-1",
        email="user@example.com",
        role=role,
        type=TokenType.ACCESS,
        iss="bustrack-sv",
        aud="bustrack-api",
        iat=1_700_000_000,
        exp=1_700_000_900,
        jti="jti-1",
    )


class TestRequireRole:
    """Tests for require_role guards."""

    @pytest.mark.parametrize(
        ("guard", "role", "allowed"),
        [
            (require_admin, Role.ADMIN, True),
            (require_admin, Role.SUPERVISOR, False),
            (require_supervisor_or_admin, Role.ADMIN, True),
            (require_supervisor_or_admin, Role.SUPERVISOR, True),
        ],
    )
    def test_role_matrix(self, guard, role, allowed):
        identity = make_identity(role)

        if allowed:
            assert guard(identity) is identity
        else:
            with pytest.raises(ForbiddenError) as exc_info:
                guard(identity)
            assert exc_info.value.error_code == ErrorKind.WRONG_ROLE

    def test_no_identity_is_unauthenticated(self):
        with pytest.raises(UnauthorizedError) as exc_info:
            require_admin(None)

        assert exc_info.value.error_code == ErrorKind.UNAUTHENTICATED

    def test_identity_without_role(self):
        with pytest.raises(ForbiddenError) as exc_info:
            require_supervisor_or_admin(make_identity(None))

        assert exc_info.value.error_code == ErrorKind.NO_ROLE
        assert exc_info.value.message == "User role is not defined"

    def test_wrong_role_message_names_required_and_actual(self):
        with pytest.raises(ForbiddenError) as exc_info:
            require_admin(make_identity(Role.SUPERVISOR))

        assert exc_info.value.message == (
            "Access denied. Required role(s): admin. Your role: supervisor"
        )
        assert exc_info.value.details == {
            "required_roles": ["admin"],
            "actual_role": "supervisor",
        }

    def test_require_role_needs_roles(self):
        with pytest.raises(ValueError):
            require_role()


class TestRoleDependency:
    """Tests for the FastAPI adapter."""

    async def test_dependency_applies_guard(self):
        dependency = role_dependency(require_admin)
        identity = make_identity(Role.ADMIN)

        assert await dependency(identity) is identity

    async def test_dependency_rejects(self):
        dependency = role_dependency(require_admin)

        with pytest.raises(ForbiddenError):
            await dependency(make_identity(Role.SUPERVISOR))


class TestRoleParse:
    """Tests for Role.parse."""

    def test_parse_known(self):
        assert Role.parse("admin") is Role.ADMIN

    @pytest.mark.parametrize("value", [None, ""])
    def test_parse_absent(self, value):
        assert Role.parse(value) is None

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            Role.parse("driver")
