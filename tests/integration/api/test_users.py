"""Integration tests for user administration endpoints."""

import pytest
from httpx import AsyncClient


pytestmark = pytest.mark.integration


USERS_URL = "/api/v1/users"


class TestUserAdministration:
    async def test_supervisor_is_forbidden(self, client: AsyncClient, supervisor_headers):
        response = await client.get(USERS_URL, headers=supervisor_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "wrong_role"

    async def test_list_users(self, client: AsyncClient, admin_headers, supervisor_user):
        response = await client.get(USERS_URL, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert all("password_hash" not in item for item in data["items"])

    async def test_list_by_role(self, client: AsyncClient, admin_headers, supervisor_user):
        response = await client.get(
            USERS_URL, params={"role": "supervisor"}, headers=admin_headers
        )

        assert [item["id"] for item in response.json()["items"]] == [supervisor_user.id]

    async def test_get_user(self, client: AsyncClient, admin_headers, supervisor_user):
        response = await client.get(
            f"{USERS_URL}/{supervisor_user.id}", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["email"] == supervisor_user.email

    async def test_get_missing_user(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{USERS_URL}/missing", headers=admin_headers)

        assert response.status_code == 404

    async def test_promote_user(self, client: AsyncClient, admin_headers, supervisor_user):
        response = await client.patch(
            f"{USERS_URL}/{supervisor_user.id}",
            json={"role": "admin"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    async def test_invalid_role(self, client: AsyncClient, admin_headers, supervisor_user):
        response = await client.patch(
            f"{USERS_URL}/{supervisor_user.id}",
            json={"role": "driver"},
            headers=admin_headers,
        )

        assert response.status_code == 422
