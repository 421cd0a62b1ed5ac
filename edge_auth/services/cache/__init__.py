from .base import BaseRedisClient, close_redis_pool, get_redis_pool
from .rate_limiter import (
    MemoryRateLimitStore,
    RateLimiter,
    RateLimitStore,
    RedisRateLimitStore,
)

__all__ = [
    "BaseRedisClient",
    "close_redis_pool",
    "get_redis_pool",
    "MemoryRateLimitStore",
    "RateLimiter",
    "RateLimitStore",
    "RedisRateLimitStore",
]
