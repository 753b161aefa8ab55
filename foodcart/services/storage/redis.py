"""
Redis Cart Storage

Production snapshot storage on Redis. Each snapshot is a plain string value
under its key, refreshed with a TTL on every write so abandoned carts expire
on their own.

Requirements:
    - REDIS_URL must point at a reachable Redis server

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from foodcart.core.config import get_settings
from foodcart.exceptions import PersistenceError
from foodcart.services.storage.base import BaseCartStorage

logger = logging.getLogger(__name__)


class RedisCartStorage(BaseCartStorage):
    """
    Redis-backed snapshot storage.

    Attributes:
        CART_EXPIRY_SECONDS: TTL applied on every save
    """

    CART_EXPIRY_SECONDS = 7 * 24 * 60 * 60

    def __init__(self, redis_url: Optional[str] = None, client=None):
        """
        Initialize the Redis client.

        Args:
            redis_url: Connection URL (defaults to REDIS_URL)
            client: Pre-built async client, mainly for tests
        """
        settings = get_settings()
        self._redis_url = redis_url or settings.redis_url

        if client is None:
            client = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        self._client = client

        logger.info("RedisCartStorage initialized")

    @property
    def backend_name(self) -> str:
        return "redis"

    async def load(self, key: str) -> Optional[str]:
        try:
            value = await self._client.get(key)
        except RedisError as e:
            raise PersistenceError(f"Redis read failed for '{key}': {e}") from e

        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def save(self, key: str, value: str) -> None:
        try:
            await self._client.setex(key, self.CART_EXPIRY_SECONDS, value)
        except RedisError as e:
            raise PersistenceError(f"Redis write failed for '{key}': {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._client.delete(key))
        except RedisError as e:
            raise PersistenceError(f"Redis delete failed for '{key}': {e}") from e

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
