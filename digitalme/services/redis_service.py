from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis
from loguru import logger

from digitalme.core.config import settings

T = TypeVar("T")

# Errors a dropped or misconfigured connection can surface as
STORE_ERRORS = (redis.RedisError, OSError)


class RedisService:
    """
    Thin async key-value layer over Redis.

    Every operation degrades instead of raising: reads return None, writes return False, and the
    failure is logged. Callers decide what a missing profile or failed save means.
    """

    def __init__(self, redis_url: str = settings.REDIS_URL, max_connections: int = settings.REDIS_MAX_CONNECTIONS):
        self.redis_url = redis_url
        self.max_connections = max_connections
        self._client: redis.Redis | None = None
        if not redis_url:
            logger.warning("REDIS_URL is empty; profile persistence is unavailable")

    def _connect(self) -> redis.Redis:
        if self._client is None:
            logger.info(f"Connecting to Redis (pool size {self.max_connections})")
            self._client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=self.max_connections,
                health_check_interval=30,
            )
        return self._client

    async def _guarded(self, action: str, key: str, call: Callable[[redis.Redis], Awaitable[T]], fallback: T) -> T:
        try:
            return await call(self._connect())
        except STORE_ERRORS as exc:
            logger.error(f"Redis {action} failed for '{key}': {exc}")
            return fallback

    async def get(self, key: str) -> str | None:
        return await self._guarded("get", key, lambda client: client.get(key), None)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store ``str(value)`` under ``key``.

        Args:
            key: Storage key
            value: Value to store, stringified
            ttl: Seconds until expiry; None keeps the key forever

        Returns:
            True if Redis acknowledged the write
        """

        async def write(client: redis.Redis) -> bool:
            return bool(await client.set(key, str(value), ex=ttl))

        return await self._guarded("set", key, write, False)

    async def delete(self, key: str) -> bool:
        async def remove(client: redis.Redis) -> bool:
            return bool(await client.delete(key))

        return await self._guarded("delete", key, remove, False)

    async def ping(self) -> bool:
        async def check(client: redis.Redis) -> bool:
            return bool(await client.ping())

        return await self._guarded("ping", "-", check, False)

    async def close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except STORE_ERRORS as exc:
            logger.warning(f"Error while closing Redis connection: {exc}")
        finally:
            self._client = None


redis_service = RedisService()
