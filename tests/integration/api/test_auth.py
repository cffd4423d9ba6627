"""Integration tests for auth endpoints."""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient

from bustrack.core.auth.schemas import TokenSubject
from bustrack.core.permissions.roles import Role
from tests.factories.user import DEFAULT_PASSWORD


pytestmark = pytest.mark.integration


REGISTER_URL = "/api/v1/auth/register"
LOGIN_URL = "/api/v1/auth/login"
REFRESH_URL = "/api/v1/auth/refresh"
ME_URL = "/api/v1/auth/me"


def registration(**overrides) -> dict:
    return {
        "email": "newuser@example.com",
        "name": "New User",
        "password": "SecurePass123!",
        **overrides,
    }


class TestRegistration:
    """Tests for user registration endpoint."""

    async def test_register_success(self, client: AsyncClient):
        """POST /api/v1/auth/register should create a supervisor and sign in."""
        response = await client.post(REGISTER_URL, json=registration())

        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 15 * 60
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["role"] == "supervisor"
        assert "password_hash" not in data["user"]

    async def test_register_normalizes_email(self, client: AsyncClient):
        response = await client.post(
            REGISTER_URL, json=registration(email="NewUser@Example.COM")
        )

        assert response.status_code == 201
        assert response.json()["user"]["email"] == "newuser@example.com"

    async def test_register_with_role(self, client: AsyncClient):
        response = await client.post(REGISTER_URL, json=registration(role="admin"))

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "admin"

    async def test_register_duplicate_email(self, client: AsyncClient, supervisor_user):
        """POST /api/v1/auth/register should reject an email in any case."""
        response = await client.post(
            REGISTER_URL, json=registration(email=supervisor_user.email.upper())
        )

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "duplicate_key"
        assert data["field"] == "email"

    async def test_register_weak_password(self, client: AsyncClient):
        """POST /api/v1/auth/register should report every violated rule."""
        response = await client.post(REGISTER_URL, json=registration(password="short"))

        assert response.status_code == 422
        data = response.json()
        assert data["code"] == "validation_error"
        messages = [error["message"] for error in data["errors"]]
        assert "Password must be at least 8 characters long" in messages
        assert "Password must contain at least one uppercase letter" in messages
        assert "Password must contain at least one digit" in messages

    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post(REGISTER_URL, json=registration(email="not-an-email"))

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "email"

    async def test_register_unknown_role(self, client: AsyncClient):
        response = await client.post(REGISTER_URL, json=registration(role="driver"))

        assert response.status_code == 422


class TestLogin:
    """Tests for login endpoint."""

    async def test_login_success(self, client: AsyncClient, supervisor_user):
        """POST /api/v1/auth/login should return tokens and the user."""
        response = await client.post(
            LOGIN_URL,
            json={"email": supervisor_user.email, "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["user"]["id"] == supervisor_user.id

    async def test_login_email_is_case_insensitive(self, client: AsyncClient, admin_user):
        response = await client.post(
            LOGIN_URL,
            json={"email": admin_user.email.upper(), "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 200

    async def test_wrong_password_and_unknown_email_look_the_same(
        self, client: AsyncClient, supervisor_user
    ):
        wrong_password = await client.post(
            LOGIN_URL,
            json={"email": supervisor_user.email, "password": "WrongPass1!"},
        )
        unknown_email = await client.post(
            LOGIN_URL,
            json={"email": "nobody@example.com", "password": DEFAULT_PASSWORD},
        )

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json()["detail"] == unknown_email.json()["detail"]
        assert wrong_password.json()["code"] == "invalid_credentials"

    async def test_register_then_login(self, client: AsyncClient):
        await client.post(REGISTER_URL, json=registration())

        response = await client.post(
            LOGIN_URL,
            json={"email": "newuser@example.com", "password": "SecurePass123!"},
        )

        assert response.status_code == 200


class TestRefresh:
    """Tests for token refresh endpoint."""

    async def test_refresh_success(self, client: AsyncClient, token_service, admin_user):
        subject = TokenSubject(id=admin_user.id, email=admin_user.email, role=Role.ADMIN)
        refresh_token = token_service.issue_refresh(subject)

        response = await client.post(REFRESH_URL, json={"refreshToken": refresh_token})

        assert response.status_code == 200
        data = response.json()
        identity = token_service.verify_access(data["access_token"])
        assert identity.id == admin_user.id
        assert identity.role == Role.ADMIN
        assert token_service.verify_refresh(data["refresh_token"]).id == admin_user.id

    async def test_refresh_accepts_snake_case(self, client: AsyncClient, token_service):
        refresh_token = token_service.issue_refresh(
            TokenSubject(id="user-1", email="a@example.com", role=Role.SUPERVISOR)
        )

        response = await client.post(REFRESH_URL, json={"refresh_token": refresh_token})

        assert response.status_code == 200

    async def test_access_token_is_not_a_refresh_token(
        self, client: AsyncClient, token_service
    ):
        access_token = token_service.issue_access(
            TokenSubject(id="user-1", email="a@example.com", role=Role.SUPERVISOR)
        )

        response = await client.post(REFRESH_URL, json={"refreshToken": access_token})

        assert response.status_code == 401
        assert response.json()["code"] == "token_invalid"

    async def test_expired_refresh_token(self, client: AsyncClient, token_service):
        issued = datetime.now(UTC) - timedelta(days=8)
        refresh_token = token_service.issue_refresh(
            TokenSubject(id="user-1", email="a@example.com", role=Role.SUPERVISOR),
            now=issued,
        )

        response = await client.post(REFRESH_URL, json={"refreshToken": refresh_token})

        assert response.status_code == 401
        assert response.json()["code"] == "token_expired"


class TestMe:
    """Tests for the current-user endpoint."""

    async def test_me(self, client: AsyncClient, supervisor_user, supervisor_headers):
        response = await client.get(ME_URL, headers=supervisor_headers)

        assert response.status_code == 200
        assert response.json()["email"] == supervisor_user.email

    async def test_me_without_header(self, client: AsyncClient):
        response = await client.get(ME_URL)

        assert response.status_code == 401
        assert response.json()["code"] == "no_token"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.parametrize(
        ("header", "code"),
        [
            ("Basic dXNlcjpwYXNz", "bad_scheme"),
            ("Bearer", "empty_token"),
            ("Bearer not-a-jwt", "token_invalid"),
        ],
    )
    async def test_me_with_bad_header(self, client: AsyncClient, header, code):
        response = await client.get(ME_URL, headers={"Authorization": header})

        assert response.status_code == 401
        assert response.json()["code"] == code

    async def test_me_with_expired_token(self, client: AsyncClient, token_service, admin_user):
        token = token_service.issue_access(
            TokenSubject(id=admin_user.id, email=admin_user.email, role=Role.ADMIN),
            now=datetime.now(UTC) - timedelta(hours=1),
        )

        response = await client.get(ME_URL, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        data = response.json()
        assert data["code"] == "token_expired"
        assert data["detail"] == "Token has expired. Please login again."

    async def test_me_for_deleted_user(self, client: AsyncClient, token_service):
        token = token_service.issue_access(
            TokenSubject(id="gone", email="gone@example.com", role=Role.SUPERVISOR)
        )

        response = await client.get(ME_URL, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
