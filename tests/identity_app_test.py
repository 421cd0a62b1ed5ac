from unittest.mock import AsyncMock, patch

import pytest

from edge_auth.main import _check_dependencies
from edge_auth.services.token_issuer import token_issuer


@pytest.mark.anyio
class TestIdentityStartup:
    """Tests for the identity service startup checks."""

    async def test_rejects_non_hmac_algorithm(self):
        with (
            patch.object(token_issuer, "algorithm", "RS256"),
            patch("edge_auth.main.create_tables", AsyncMock()) as mock_create_tables,
        ):
            with pytest.raises(RuntimeError):
                await _check_dependencies()

        mock_create_tables.assert_not_awaited()

    async def test_rejects_missing_secret_key(self):
        with (
            patch.object(token_issuer, "secret_key", None),
            patch("edge_auth.main.create_tables", AsyncMock()) as mock_create_tables,
        ):
            with pytest.raises(RuntimeError):
                await _check_dependencies()

        mock_create_tables.assert_not_awaited()

    async def test_creates_tables_when_configured(self):
        with patch("edge_auth.main.create_tables", AsyncMock()) as mock_create_tables:
            await _check_dependencies()

        mock_create_tables.assert_awaited_once()
