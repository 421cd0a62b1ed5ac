from abc import ABC

from loguru import logger
from redis.asyncio import ConnectionPool, Redis

from edge_auth.core.config import settings

# Process-wide Redis connection pool, created at startup and closed at shutdown
_redis_pool: ConnectionPool | None = None


def get_redis_pool() -> ConnectionPool:
    """
    Get or create the shared Redis connection pool.

    Returns:
        ConnectionPool: Shared Redis connection pool instance

    Raises:
        ValueError: If settings.redis_url is not configured.
    """
    global _redis_pool

    if settings.redis_url is None:
        raise ValueError("REDIS_URL is not configured.")

    if _redis_pool is None:
        _redis_pool = ConnectionPool.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=False,
            max_connections=settings.redis_max_pool_connections,
            retry_on_timeout=True,
            socket_connect_timeout=settings.redis_socket_connect_timeout,
            socket_timeout=settings.redis_socket_timeout,
        )
        logger.info(
            f"Redis connection pool created with max_connections={settings.redis_max_pool_connections}"
        )
    return _redis_pool


async def close_redis_pool() -> None:
    """Disconnect every pooled connection and forget the pool."""
    global _redis_pool

    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection pool closed")


class BaseRedisClient(ABC):
    """
    Base class for Redis-backed services borrowing the shared connection pool.

    Provides health checks and graceful close for every Redis-based service.
    """

    def __init__(self, redis_client: Redis | None = None):
        self._redis_client = redis_client

    @property
    def redis_client(self) -> Redis:
        """
        Get the Redis client instance, created from the shared pool on first use

        Returns:
            Redis: Redis client
        """
        if self._redis_client is None:
            self._redis_client = Redis(connection_pool=get_redis_pool())
            logger.debug(
                f"Redis client initialized for {self.__class__.__name__} using shared pool"
            )

        return self._redis_client

    async def health_check(self) -> bool:
        """
        Check Redis connection health by pinging the server.

        Returns:
            bool: True if Redis is healthy and responsive, False otherwise
        """
        try:
            await self.redis_client.ping()
            return True
        except Exception as e:
            logger.error(f"Redis health check failed for {self.__class__.__name__}: {e}")
            return False

    async def close(self):
        """Close Redis connection gracefully"""
        if self._redis_client is not None:
            try:
                await self._redis_client.aclose()
                logger.info(f"Redis connection closed for {self.__class__.__name__}")
            except Exception as e:
                logger.error(f"Error closing Redis connection for {self.__class__.__name__}: {e}")
