from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from edge_auth.core.constants import RateLimitPrefix
from edge_auth.core.exceptions.rate_limiter import (
    RateLimitConfigurationError,
    RateLimitStoreError,
)
from edge_auth.services.cache.rate_limiter import (
    MemoryRateLimitStore,
    RateLimiter,
    RedisRateLimitStore,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryRateLimitStore:
    return MemoryRateLimitStore(clock=clock)


class TestRateLimiterConfiguration:
    """Test RateLimiter configuration and validation."""

    @pytest.mark.parametrize("limit", [0, -5])
    def test_invalid_limit(self, memory_store: MemoryRateLimitStore, limit: int):
        with pytest.raises(RateLimitConfigurationError) as exc_info:
            RateLimiter(memory_store, limit=limit, window=60)

        assert "must be positive" in str(exc_info.value)

    @pytest.mark.parametrize("window", [0, -1])
    def test_invalid_window(self, memory_store: MemoryRateLimitStore, window: int):
        with pytest.raises(RateLimitConfigurationError) as exc_info:
            RateLimiter(memory_store, limit=10, window=window)

        assert "window must be positive" in str(exc_info.value)


@pytest.mark.anyio
class TestRateLimiterWithMemoryStore:
    """Test admission decisions over the in-process store."""

    async def test_allows_up_to_limit_then_denies(self, memory_store: MemoryRateLimitStore):
        limiter = RateLimiter(memory_store, limit=10, window=900)

        results = [await limiter.admit("10.0.0.1") for _ in range(10)]

        assert all(is_allowed for is_allowed, _ in results)
        assert [info["remaining"] for _, info in results] == list(range(9, -1, -1))

        is_allowed, info = await limiter.admit("10.0.0.1")

        assert is_allowed is False
        assert info["remaining"] == 0
        assert info["limit"] == 10
        assert 0 < info["retry_after"] <= 900

    async def test_denied_requests_keep_counting(self, memory_store: MemoryRateLimitStore):
        limiter = RateLimiter(memory_store, limit=1, window=60)

        await limiter.admit("10.0.0.1")
        await limiter.admit("10.0.0.1")
        is_allowed, _ = await limiter.admit("10.0.0.1")

        assert is_allowed is False

    async def test_clients_are_independent(self, memory_store: MemoryRateLimitStore):
        limiter = RateLimiter(memory_store, limit=2, window=60)

        await limiter.admit("10.0.0.1")
        await limiter.admit("10.0.0.1")
        denied, _ = await limiter.admit("10.0.0.1")
        allowed, _ = await limiter.admit("10.0.0.2")

        assert denied is False
        assert allowed is True

    async def test_window_resets_after_expiry(
        self, memory_store: MemoryRateLimitStore, clock: FakeClock
    ):
        """Test a full window of quota returns once the window has elapsed."""
        limiter = RateLimiter(memory_store, limit=10, window=900)
        for _ in range(11):
            await limiter.admit("10.0.0.1")

        clock.advance(899)
        still_denied, _ = await limiter.admit("10.0.0.1")

        clock.advance(1)
        allowed, info = await limiter.admit("10.0.0.1")

        assert still_denied is False
        assert allowed is True
        assert info["remaining"] == 9

    async def test_window_starts_at_first_request(
        self, memory_store: MemoryRateLimitStore, clock: FakeClock
    ):
        limiter = RateLimiter(memory_store, limit=1, window=100)

        await limiter.admit("10.0.0.1")
        clock.advance(60)
        _, info = await limiter.admit("10.0.0.1")

        assert info["retry_after"] == 40

    async def test_expired_windows_are_swept(
        self, memory_store: MemoryRateLimitStore, clock: FakeClock
    ):
        limiter = RateLimiter(memory_store, limit=5, window=60)
        for i in range(3):
            await limiter.admit(f"10.0.0.{i}")

        clock.advance(61)
        await limiter.admit("10.0.0.99")

        assert len(memory_store) == 1

    async def test_reset(self, memory_store: MemoryRateLimitStore):
        limiter = RateLimiter(memory_store, limit=1, window=60)
        await limiter.admit("10.0.0.1")
        await limiter.admit("10.0.0.1")

        await limiter.reset("10.0.0.1")
        is_allowed, _ = await limiter.admit("10.0.0.1")

        assert is_allowed is True

    async def test_disabled_always_allows(self, memory_store: MemoryRateLimitStore):
        limiter = RateLimiter(memory_store, limit=1, window=60, enabled=False)

        results = [await limiter.admit("10.0.0.1") for _ in range(5)]

        assert all(is_allowed for is_allowed, _ in results)
        assert len(memory_store) == 0


@pytest.mark.anyio
class TestRateLimiterFailOpen:
    """Test RateLimiter when the store is unavailable."""

    async def test_store_error_allows_request(self):
        store = AsyncMock()
        store.hit.side_effect = RateLimitStoreError("Redis down")
        limiter = RateLimiter(store, limit=10, window=60)

        is_allowed, info = await limiter.admit("10.0.0.1")

        assert is_allowed is True
        assert info["limit"] == 10
        assert info["remaining"] == 10

    async def test_key_uses_prefix(self):
        store = AsyncMock()
        store.hit.return_value = (1, 60.0)
        limiter = RateLimiter(store, limit=10, window=60)

        await limiter.admit("10.0.0.1")

        store.hit.assert_awaited_once_with(f"{RateLimitPrefix.SENSITIVE}10.0.0.1", 60)


def _mock_pipeline(results=None, error: Exception | None = None) -> MagicMock:
    pipeline = MagicMock()
    pipeline.execute = AsyncMock(return_value=results, side_effect=error)
    return pipeline


@pytest.mark.anyio
class TestRedisRateLimitStore:
    """Test the Redis store against a mocked client."""

    async def test_hit_counts_and_reports_ttl(self):
        redis_client = MagicMock()
        pipeline = _mock_pipeline(results=[None, 3, 899500])
        redis_client.pipeline.return_value = pipeline
        store = RedisRateLimitStore(redis_client=redis_client)

        count, reset_after = await store.hit("ratelimit:sensitive:1.2.3.4", 900)

        assert count == 3
        assert reset_after == pytest.approx(899.5)
        redis_client.pipeline.assert_called_once_with(transaction=True)
        pipeline.set.assert_called_once_with("ratelimit:sensitive:1.2.3.4", 0, ex=900, nx=True)
        pipeline.incr.assert_called_once_with("ratelimit:sensitive:1.2.3.4")
        pipeline.pttl.assert_called_once_with("ratelimit:sensitive:1.2.3.4")

    async def test_hit_without_ttl_falls_back_to_window(self):
        redis_client = MagicMock()
        redis_client.pipeline.return_value = _mock_pipeline(results=[True, 1, -1])
        store = RedisRateLimitStore(redis_client=redis_client)

        _, reset_after = await store.hit("key", 900)

        assert reset_after == 900.0

    async def test_hit_wraps_redis_errors(self):
        redis_client = MagicMock()
        redis_client.pipeline.return_value = _mock_pipeline(
            error=RedisConnectionError("refused")
        )
        store = RedisRateLimitStore(redis_client=redis_client)

        with pytest.raises(RateLimitStoreError):
            await store.hit("key", 900)

    async def test_limiter_fails_open_on_redis_outage(self):
        redis_client = MagicMock()
        redis_client.pipeline.return_value = _mock_pipeline(
            error=RedisConnectionError("refused")
        )
        limiter = RateLimiter(RedisRateLimitStore(redis_client=redis_client), limit=1, window=60)

        is_allowed, _ = await limiter.admit("10.0.0.1")

        assert is_allowed is True

    async def test_reset_deletes_key(self, mock_redis_client: AsyncMock):
        store = RedisRateLimitStore(redis_client=mock_redis_client)

        await store.reset("key")

        mock_redis_client.delete.assert_awaited_once_with("key")

    async def test_health_check(self, mock_redis_client: AsyncMock):
        store = RedisRateLimitStore(redis_client=mock_redis_client)

        assert await store.health_check() is True

        mock_redis_client.ping.side_effect = RedisConnectionError("refused")

        assert await store.health_check() is False
