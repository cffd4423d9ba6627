"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from bustrack.config import Settings
from bustrack.core.auth.passwords import PasswordHasher
from bustrack.core.auth.schemas import TokenSubject
from bustrack.core.auth.tokens import TokenConfig, TokenService
from bustrack.core.permissions.roles import Role
from bustrack.core.store.memory import InMemoryDocumentStore
from bustrack.main import create_app
from bustrack.modules.buses.repos import BusRepository
from bustrack.modules.users.models import User
from bustrack.modules.users.repos import UserRepository
from tests.factories.user import DEFAULT_PASSWORD, UserFactory


TEST_SECRET_KEY = "test-secret-key-with-at-least-32-characters"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment, with a cheap bcrypt cost."""
    return Settings(
        _env_file=None,
        environment="test",
        secret_key=TEST_SECRET_KEY,
        bcrypt_rounds=4,
        store_backend="memory",
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def token_service(settings: Settings) -> TokenService:
    return TokenService(TokenConfig.from_settings(settings))


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def user_repo(store: InMemoryDocumentStore) -> UserRepository:
    return UserRepository(store, timeout=1.0)


@pytest.fixture
def bus_repo(store: InMemoryDocumentStore) -> BusRepository:
    return BusRepository(store, timeout=1.0)


@pytest.fixture
def app(settings: Settings, store: InMemoryDocumentStore) -> FastAPI:
    """Create test application instance sharing the test store."""
    return create_app(settings, store=store)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============================================================
# User Fixtures
# ============================================================


@pytest.fixture
async def admin_user(user_repo: UserRepository) -> User:
    """A persisted admin whose password is ``DEFAULT_PASSWORD``."""
    return await user_repo.create(UserFactory.build(role=Role.ADMIN))


@pytest.fixture
async def supervisor_user(user_repo: UserRepository) -> User:
    """A persisted supervisor whose password is ``DEFAULT_PASSWORD``."""
    return await user_repo.create(UserFactory.build(role=Role.SUPERVISOR))


def bearer(token_service: TokenService, user: User) -> dict[str, str]:
    """Authorization header carrying a fresh access token for ``user``."""
    token = token_service.issue_access(
        TokenSubject(id=str(user.id), email=user.email, role=user.role)
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(token_service: TokenService, admin_user: User) -> dict[str, str]:
    return bearer(token_service, admin_user)


@pytest.fixture
def supervisor_headers(
    token_service: TokenService, supervisor_user: User
) -> dict[str, str]:
    return bearer(token_service, supervisor_user)


@pytest.fixture
def default_password() -> str:
    return DEFAULT_PASSWORD
