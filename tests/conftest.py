import os

# Settings are read at import time, configure them before importing the package
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CURRENT_ENVIRONMENT", "local")
os.environ.setdefault("IDENTITY_SERVICE_URL", "http://identity.test")
os.environ.pop("REDIS_URL", None)

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from faker import Faker  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from edge_auth.api.deps.services import get_registration_service  # noqa: E402
from edge_auth.main import app as identity_app  # noqa: E402
from edge_auth.services.registration_service import RegistrationService  # noqa: E402
from edge_auth.services.token_issuer import TokenIssuer  # noqa: E402

DEFAULT_PASSWORD = "P4ssword123"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def fake() -> Faker:
    return Faker()


@pytest.fixture
def registration_payload(fake: Faker) -> dict:
    """A payload that passes every registration rule."""
    return {
        "email": f"{fake.user_name().replace('.', '_')}@example.com",
        "username": f"user_{fake.random_number(digits=6)}",
        "password": DEFAULT_PASSWORD,
    }


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret_key="test-secret-key", access_ttl=3600, refresh_ttl=604800)


@pytest.fixture
def mock_user_repo() -> AsyncMock:
    """UserRepo stand-in with no existing users."""
    repo = AsyncMock()
    repo.get_by_email_or_username.return_value = None
    repo.create_user.return_value = MagicMock(id=42)
    return repo


@pytest.fixture
def registration_service(mock_user_repo: AsyncMock, token_issuer: TokenIssuer):
    return RegistrationService(user_repo=mock_user_repo, issuer=token_issuer)


@pytest.fixture
def mock_redis_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
async def identity_client(
    registration_service: RegistrationService,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the identity app with the database-backed service replaced."""
    identity_app.dependency_overrides[get_registration_service] = lambda: registration_service

    async with AsyncClient(
        transport=ASGITransport(app=identity_app), base_url="http://test"
    ) as client:
        yield client

    identity_app.dependency_overrides.clear()
