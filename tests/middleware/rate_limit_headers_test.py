from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import Response

from edge_auth.core.types import RateLimitInfoDict
from edge_auth.middleware.rate_limit import RateLimitHeaderMiddleware, rate_limit_headers


@pytest.fixture
def info() -> RateLimitInfoDict:
    return RateLimitInfoDict(limit=10, remaining=3, reset_time=1700000000, retry_after=120, window=900)


class TestRateLimitHeaders:
    """Tests for rate limit header rendering."""

    def test_admitted(self, info: RateLimitInfoDict):
        assert rate_limit_headers(info) == {
            "RateLimit-Policy": "10;w=900",
            "RateLimit-Limit": "10",
            "RateLimit-Remaining": "3",
            "RateLimit-Reset": "120",
        }

    def test_denied_adds_retry_after(self, info: RateLimitInfoDict):
        headers = rate_limit_headers(info, is_denied=True)

        assert headers["Retry-After"] == "120"


@pytest.mark.anyio
class TestRateLimitHeaderMiddleware:
    """Tests for RateLimitHeaderMiddleware."""

    async def test_adds_headers_when_limited(self, info: RateLimitInfoDict):
        middleware = RateLimitHeaderMiddleware(MagicMock())
        request = MagicMock()
        request.state = SimpleNamespace(rate_limit_info=info)

        async def call_next(req):
            return Response()

        result = await middleware.dispatch(request, call_next)

        assert result.headers["RateLimit-Remaining"] == "3"

    async def test_skips_requests_without_limiter(self):
        middleware = RateLimitHeaderMiddleware(MagicMock())
        request = MagicMock()
        request.state = SimpleNamespace()

        async def call_next(req):
            return Response()

        result = await middleware.dispatch(request, call_next)

        assert "RateLimit-Limit" not in result.headers
