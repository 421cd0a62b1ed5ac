from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import status
from httpx import AsyncClient

from edge_auth.core.constants import ResponseMessages
from edge_auth.services.registration_service import RegistrationService
from edge_auth.services.token_issuer import TokenIssuer

REGISTER_URL = "/api/auth/register"


@pytest.mark.anyio
class TestRegisterEndpoint:
    """Tests for POST /api/auth/register."""

    async def test_register_success(
        self,
        identity_client: AsyncClient,
        token_issuer: TokenIssuer,
        registration_payload: dict,
    ):
        response = await identity_client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully!"
        assert token_issuer.decode(body["accessToken"]).account_id == "42"
        assert token_issuer.decode(body["refreshToken"]).account_id == "42"

    async def test_register_validation_error(
        self,
        identity_client: AsyncClient,
        mock_user_repo: AsyncMock,
        registration_payload: dict,
    ):
        registration_payload["username"] = "ab"

        response = await identity_client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "message": '"username" length must be at least 3 characters long',
        }
        mock_user_repo.create_user.assert_not_awaited()

    async def test_register_display_name_email(
        self,
        identity_client: AsyncClient,
        mock_user_repo: AsyncMock,
        registration_payload: dict,
    ):
        registration_payload["email"] = "Alice <a@example.com>"

        response = await identity_client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == '"email" must be a valid email'
        mock_user_repo.create_user.assert_not_awaited()

    async def test_register_non_json_body(self, identity_client: AsyncClient):
        response = await identity_client.post(
            REGISTER_URL,
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == '"value" must be of type object'

    async def test_register_existing_user(
        self,
        identity_client: AsyncClient,
        mock_user_repo: AsyncMock,
        registration_payload: dict,
    ):
        mock_user_repo.get_by_email_or_username.return_value = MagicMock(id=1)

        response = await identity_client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "message": ResponseMessages.USER_ALREADY_EXISTS,
        }

    async def test_register_unexpected_error(
        self,
        identity_client: AsyncClient,
        mock_user_repo: AsyncMock,
        registration_payload: dict,
    ):
        """Test unexpected failures become a generic 500 without internals."""
        mock_user_repo.create_user.side_effect = RuntimeError("boom")

        response = await identity_client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"success": False, "message": "Internal server error"}


@pytest.mark.anyio
class TestIdentityApp:
    """Tests for identity app wiring."""

    async def test_health_check(self, identity_client: AsyncClient):
        response = await identity_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "healthy", "service": "identity"}

    async def test_security_and_request_id_headers(self, identity_client: AsyncClient):
        response = await identity_client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Request-ID"] == "abc123"


class InMemoryUserRepo:
    """User directory keeping accounts in a list, unique on email and on username."""

    def __init__(self):
        self.users: list[MagicMock] = []

    async def get_by_email_or_username(self, email: str, username: str):
        for user in self.users:
            if user.email == email or user.username == username:
                return user
        return None

    async def create_user(self, username: str, email: str, password: str):
        user = MagicMock(id=len(self.users) + 1, username=username, email=email)
        self.users.append(user)
        return user


@pytest.mark.anyio
class TestRegisterTwice:
    """Tests for registering the same identity twice."""

    @pytest.fixture
    def user_repo(self) -> InMemoryUserRepo:
        return InMemoryUserRepo()

    @pytest.fixture
    def registration_service(self, user_repo: InMemoryUserRepo, token_issuer: TokenIssuer):
        return RegistrationService(user_repo=user_repo, issuer=token_issuer)

    async def test_same_email_different_username(
        self, identity_client: AsyncClient, user_repo: InMemoryUserRepo
    ):
        first = {"email": "a@example.com", "username": "alice", "password": "Secret123"}
        second = {**first, "username": "alice2"}

        created = await identity_client.post(REGISTER_URL, json=first)
        duplicates = [await identity_client.post(REGISTER_URL, json=second) for _ in range(2)]

        assert created.status_code == status.HTTP_201_CREATED
        for response in duplicates:
            assert response.status_code == status.HTTP_400_BAD_REQUEST
            assert response.json()["message"] == ResponseMessages.USER_ALREADY_EXISTS
        assert [user.email for user in user_repo.users] == ["a@example.com"]
