import asyncio
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from edge_auth.core.constants import RateLimitPrefix
from edge_auth.core.exceptions.rate_limiter import (
    RateLimitConfigurationError,
    RateLimitStoreError,
)
from edge_auth.core.types import RateLimitInfoDict
from edge_auth.services.cache.base import BaseRedisClient


class RateLimitStore(ABC):
    """
    Storage for per-client windows.

    A window starts at a client's first request, counts every request, and
    is discarded once `window` seconds have passed since it started.
    """

    @abstractmethod
    async def hit(self, key: str, window: int) -> tuple[int, float]:
        """
        Record one request for key.

        Args:
            key: Full rate limit key, e.g. "ratelimit:sensitive:192.168.1.1"
            window: Window length in seconds

        Returns:
            tuple[int, float]: (requests in the current window including this one,
                seconds until the window ends)

        Raises:
            RateLimitStoreError: If the store cannot record the request.
        """

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Drop the window for key."""

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        return None


@dataclass
class ClientWindow:
    count: int
    window_start: float


class MemoryRateLimitStore(RateLimitStore):
    """
    In-process store, only consistent within a single worker process.

    Uses a monotonic clock; expired windows are swept at most once per window.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._windows: dict[str, ClientWindow] = {}
        self._lock = asyncio.Lock()
        self._last_sweep = clock()

    def _sweep(self, now: float, window: int) -> None:
        if now - self._last_sweep < window:
            return

        expired = [
            key for key, state in self._windows.items() if now - state.window_start >= window
        ]
        for key in expired:
            del self._windows[key]

        self._last_sweep = now

    async def hit(self, key: str, window: int) -> tuple[int, float]:
        async with self._lock:
            now = self.clock()
            self._sweep(now, window)

            state = self._windows.get(key)
            if state is None or now - state.window_start >= window:
                state = ClientWindow(count=0, window_start=now)
                self._windows[key] = state

            state.count += 1

            return state.count, window - (now - state.window_start)

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._windows.pop(key, None)

    def __len__(self) -> int:
        return len(self._windows)


class RedisRateLimitStore(BaseRedisClient, RateLimitStore):
    """
    Redis store shared by every gateway instance.

    One MULTI/EXEC transaction per request:
    1. SET key 0 NX EX window - opens a window if none exists
    2. INCR key - counts this request (keeps the TTL)
    3. PTTL key - time left in the window

    Redis expires the key when the window ends, which resets the counter.
    """

    def __init__(self, redis_client: Redis | None = None):
        super().__init__(redis_client)

    async def hit(self, key: str, window: int) -> tuple[int, float]:
        try:
            pipe = self.redis_client.pipeline(transaction=True)
            pipe.set(key, 0, ex=window, nx=True)
            pipe.incr(key)
            pipe.pttl(key)
            results = await pipe.execute()
        except RedisError as e:
            raise RateLimitStoreError(f"Failed to record request for key {key}", exception=e)

        count = int(results[1])
        ttl_ms = int(results[2])

        # PTTL is negative when the key has no expiry or vanished in between
        reset_after = ttl_ms / 1000 if ttl_ms > 0 else float(window)

        return count, reset_after

    async def reset(self, key: str) -> None:
        try:
            await self.redis_client.delete(key)
        except RedisError as e:
            raise RateLimitStoreError(f"Failed to reset key {key}", exception=e)


class RateLimiter:
    """
    Per-client admission control over a RateLimitStore.

    Allows up to `limit` requests per client within a window of `window`
    seconds; the window opens at the client's first request.

    Denying is a pure decision: the attempt is counted and nothing else happens,
    callers build the 429 response themselves.

    Example:
        ```python
        limiter = RateLimiter(store=MemoryRateLimitStore(), limit=10, window=900)

        is_allowed, info = await limiter.admit("192.168.1.1")

        if not is_allowed:
            # Limit exceeded, retry in info["retry_after"] seconds
            ...
        ```
    """

    def __init__(
        self,
        store: RateLimitStore,
        limit: int,
        window: int,
        prefix: str = RateLimitPrefix.SENSITIVE,
        enabled: bool = True,
    ):
        if limit <= 0:
            raise RateLimitConfigurationError(f"Rate limit must be positive, got {limit}")
        if window <= 0:
            raise RateLimitConfigurationError(f"Rate limit window must be positive, got {window}")

        self.store = store
        self.limit = limit
        self.window = window
        self.prefix = prefix
        self.enabled = enabled

    def _key(self, client_key: str) -> str:
        return f"{self.prefix}{client_key}"

    def _info(self, remaining: int, reset_after: float) -> RateLimitInfoDict:
        return RateLimitInfoDict(
            limit=self.limit,
            remaining=remaining,
            reset_time=int(time.time() + reset_after),
            retry_after=max(0, math.ceil(reset_after)),
            window=self.window,
        )

    async def admit(self, client_key: str) -> tuple[bool, RateLimitInfoDict]:
        """
        Count a request from client_key and decide whether it may proceed.

        Args:
            client_key: Client identifier, usually the source IP address

        Returns:
            tuple[bool, RateLimitInfoDict]: (is_allowed, rate_limit_info)

        Note:
            Fails open: if the store is unavailable the request is allowed and a
            warning is logged. Two requests racing at the boundary may both be
            admitted when the store is not atomic across processes.
        """
        if not self.enabled:
            return True, self._info(remaining=self.limit, reset_after=self.window)

        key = self._key(client_key)

        try:
            count, reset_after = await self.store.hit(key, self.window)
        except RateLimitStoreError as e:
            logger.warning(f"Rate limit check failed for key {key}: {e}. Allowing request.")
            return True, self._info(remaining=self.limit, reset_after=self.window)

        is_allowed = count <= self.limit

        return is_allowed, self._info(remaining=max(0, self.limit - count), reset_after=reset_after)

    async def reset(self, client_key: str) -> None:
        """
        Reset the window for a client.

        Note:
            This is useful for testing or manual intervention (e.g., unblocking a client).
        """
        await self.store.reset(self._key(client_key))
        logger.info(f"Rate limit reset for key {self._key(client_key)}")
