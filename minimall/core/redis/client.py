"""
Redis client for MINIMALL
"""

import asyncio
from typing import Optional

from redis.asyncio import Redis

from minimall.core.config.settings import settings
from minimall.core.exceptions import RedisConnectionError, RedisError
from minimall.core.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """Async Redis wrapper used for session token storage"""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        password: Optional[str] = None,
        db: Optional[int] = None,
        tls: Optional[bool] = None,
    ):
        self.host = host or settings.redis.REDIS_HOST
        self.port = port or settings.redis.REDIS_PORT
        self.password = password if password is not None else settings.redis.REDIS_PASSWORD
        self.db = db if db is not None else settings.redis.REDIS_DB
        self.tls = tls if tls is not None else settings.redis.REDIS_TLS
        self._client: Optional[Redis] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Establish Redis connection"""
        async with self._lock:
            if self._client is not None:
                return

            logger.info("Establishing Redis connection", host=self.host, port=self.port)
            client = Redis(
                host=self.host,
                port=self.port,
                password=self.password or None,
                db=self.db,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                ssl=bool(self.tls and self.host != "localhost"),
            )

            try:
                await asyncio.wait_for(client.ping(), timeout=5.0)
            except Exception as e:
                await client.aclose()
                raise RedisConnectionError(
                    message=f"Failed to connect to Redis: {e}",
                    connection_details={"host": self.host, "port": self.port},
                    cause=e,
                )

            self._client = client
            logger.info("Redis connection established successfully")

    async def disconnect(self) -> None:
        """Close Redis connection"""
        async with self._lock:
            if self._client is None:
                return
            try:
                await self._client.aclose()
                logger.info("Redis connection closed")
            except Exception as e:
                logger.warning("Error closing Redis connection", error=str(e))
            finally:
                self._client = None

    async def _ensure(self) -> Redis:
        if self._client is None:
            await self.connect()
        return self._client

    async def get(self, key: str) -> Optional[str]:
        client = await self._ensure()
        try:
            return await client.get(key)
        except Exception as e:
            raise RedisError(f"Redis GET failed for {key}: {e}", cause=e)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        client = await self._ensure()
        try:
            await client.set(key, value, ex=ttl)
        except Exception as e:
            raise RedisError(f"Redis SET failed for {key}: {e}", cause=e)

    async def delete(self, key: str) -> int:
        client = await self._ensure()
        try:
            return await client.delete(key)
        except Exception as e:
            raise RedisError(f"Redis DELETE failed for {key}: {e}", cause=e)

    async def ping(self) -> bool:
        client = await self._ensure()
        return bool(await client.ping())


_redis_client: Optional[RedisClient] = None


async def get_redis_client() -> RedisClient:
    """Get the shared Redis client, connecting on first use"""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    await _redis_client.connect()
    return _redis_client


async def close_redis_client() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.disconnect()
        _redis_client = None


async def check_redis_health() -> bool:
    """Check if Redis answers a ping"""
    try:
        client = await get_redis_client()
        return await client.ping()
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        return False
