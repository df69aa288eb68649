"""
Database Configuration
=====================

Redis connection management for the Redis-backed record store.
The file-backed store needs no connection and never touches this module.
"""

from typing import Optional, Dict
import redis.asyncio as redis  # type: ignore[import-untyped]
from redis.asyncio import ConnectionPool  # type: ignore[import-untyped]

from .settings import get_settings
from .logging import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """Owns the Redis connection pool for the lifetime of the application."""

    def __init__(self) -> None:
        self.settings = get_settings()
        self._redis_pool: Optional[ConnectionPool] = None  # type: ignore[type-arg]

    @property
    def initialized(self) -> bool:
        return self._redis_pool is not None

    async def initialize(self) -> None:
        """Create the pool and verify connectivity."""
        try:
            self._redis_pool = ConnectionPool.from_url(  # type: ignore[attr-defined]
                self.settings.redis_url,
                max_connections=self.settings.redis_max_connections,
                retry_on_timeout=True,
                decode_responses=True,
            )

            async with redis.Redis(connection_pool=self._redis_pool) as client:  # type: ignore[attr-defined]
                await client.ping()  # type: ignore[attr-defined]

            logger.info("Redis connection established", url=self.settings.redis_url)
        except Exception as e:
            logger.error("Failed to connect to Redis", error=str(e))
            self._redis_pool = None
            raise

    async def close(self) -> None:
        if self._redis_pool:  # type: ignore[misc]
            await self._redis_pool.disconnect()  # type: ignore[attr-defined]
            self._redis_pool = None
            logger.info("Redis connection closed")

    def get_redis_client(self) -> redis.Redis:  # type: ignore[type-arg]
        """Get a client bound to the shared pool."""
        if not self._redis_pool:  # type: ignore[misc]
            raise RuntimeError("Redis not initialized")
        return redis.Redis(connection_pool=self._redis_pool)  # type: ignore[attr-defined]


# Global database manager instance
db_manager = DatabaseManager()


def get_redis_client() -> redis.Redis:  # type: ignore[type-arg]
    return db_manager.get_redis_client()


async def initialize_databases() -> None:
    """Initialize connections required by the configured store backend."""
    if get_settings().store_backend == "redis":
        await db_manager.initialize()


async def close_databases() -> None:
    await db_manager.close()


async def check_redis_health() -> bool:
    """Check Redis connection health."""
    try:
        client = db_manager.get_redis_client()
        await client.ping()
        return True
    except Exception as e:
        logger.error("Redis health check failed", error=str(e))
        return False


async def check_database_health() -> Dict[str, bool]:
    """Health of each configured backend."""
    if get_settings().store_backend != "redis":
        return {"file": True}
    return {"redis": await check_redis_health()}
