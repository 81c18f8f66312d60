"""Pooled Redis connection shared by all repositories."""

import asyncio
import logging
from typing import Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError, TimeoutError, RedisError

from contact_address_service.config.settings import settings

logger = logging.getLogger(__name__)


class RedisConnectionManager:
    """Owns the connection pool; the client is created lazily on first use."""

    def __init__(self):
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None
        self._is_connected = False
        self._init_lock = asyncio.Lock()

    def _build_pool(self) -> ConnectionPool:
        return ConnectionPool(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_connection_timeout,
            max_connections=settings.redis_max_connections,
            decode_responses=True,
            health_check_interval=30
        )

    async def initialize(self) -> None:
        """Create the pool and client, then verify the server answers."""
        try:
            self._pool = self._build_pool()
            self._client = Redis(connection_pool=self._pool)
            self._is_connected = await self.health_check()
            if not self._is_connected:
                raise ConnectionError("Redis did not answer PING")
        except Exception as e:
            logger.error(
                "Failed to initialize Redis connection",
                extra={
                    "error": str(e),
                    "redis_host": settings.redis_host,
                    "redis_port": settings.redis_port
                }
            )
            raise

        logger.info(
            "Redis connection initialized",
            extra={
                "redis_host": settings.redis_host,
                "redis_port": settings.redis_port,
                "redis_db": settings.redis_db,
                "max_connections": settings.redis_max_connections
            }
        )

    async def get_client(self) -> Redis:
        if self._client is None or not self._is_connected:
            async with self._init_lock:
                if self._client is None or not self._is_connected:
                    await self.initialize()
        return self._client

    async def health_check(self) -> bool:
        """Ping Redis; any failure marks the manager as disconnected."""
        if self._client is None:
            return False

        try:
            if await self._client.ping():
                logger.debug("Redis health check passed")
                return True
            logger.warning("Redis health check failed: ping returned False")
            return False
        except (ConnectionError, TimeoutError) as e:
            logger.warning("Redis health check failed: connection error", extra={"error": str(e)})
        except RedisError as e:
            logger.error("Redis health check failed: Redis error", extra={"error": str(e)})

        self._is_connected = False
        return False

    async def close(self) -> None:
        try:
            if self._client is not None:
                await self._client.aclose()
            if self._pool is not None:
                await self._pool.aclose()
            logger.info("Redis connection closed")
        except RedisError as e:
            logger.error("Error closing Redis connection", extra={"error": str(e)})
        finally:
            self._client = None
            self._pool = None
            self._is_connected = False

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    async def reconnect(self) -> None:
        logger.info("Attempting to reconnect to Redis")
        await self.close()
        await self.initialize()


redis_manager = RedisConnectionManager()


async def get_redis_client() -> Redis:
    """Dependency function returning the shared Redis client."""
    return await redis_manager.get_client()
