import json
import time
from datetime import datetime
from typing import Any, Optional

import redis.asyncio as redis
import structlog

from booking_engine.core.config import settings

logger = structlog.get_logger(__name__)

# Seconds to wait after a failed connect before trying again
RECONNECT_INTERVAL_SECONDS = 60


class RedisClient:
    """Redis client for caching computed availability."""

    def __init__(self, url: str = None):
        self.url = url or settings.REDIS_URL
        self.redis_pool = None
        self.retry_after = 0.0

    async def init_redis(self):
        """Initialize Redis connection pool."""
        try:
            self.redis_pool = redis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                retry_on_timeout=True,
                socket_keepalive=True,
            )

            async with redis.Redis(connection_pool=self.redis_pool) as r:
                await r.ping()
                logger.info("Redis connection established")

        except Exception as e:
            self.redis_pool = None
            self.retry_after = time.monotonic() + RECONNECT_INTERVAL_SECONDS
            logger.error(
                "Failed to connect to Redis",
                retry_in_seconds=RECONNECT_INTERVAL_SECONDS,
                exc_info=e,
            )
            raise

    async def get_redis(self) -> Optional[redis.Redis]:
        """Get Redis client instance, or None while waiting to reconnect."""
        if not self.redis_pool:
            if time.monotonic() < self.retry_after:
                return None
            await self.init_redis()
        return redis.Redis(connection_pool=self.redis_pool)

    async def close(self):
        if self.redis_pool:
            await self.redis_pool.disconnect()
            self.redis_pool = None

    async def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        """Set a key-value pair in Redis."""
        try:
            client = await self.get_redis()
            if client is None:
                return False
            serialized_value = json.dumps(value) if not isinstance(value, str) else value

            if expire:
                return await client.setex(key, expire, serialized_value)
            else:
                return await client.set(key, serialized_value)

        except Exception as e:
            logger.error("Redis SET error", key=key, exc_info=e)
            return False

    async def get(self, key: str) -> Optional[Any]:
        """Get a value from Redis."""
        try:
            client = await self.get_redis()
            if client is None:
                return None
            value = await client.get(key)

            if value is None:
                return None

            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value

        except Exception as e:
            logger.error("Redis GET error", key=key, exc_info=e)
            return None

    async def delete(self, key: str) -> bool:
        """Delete a key from Redis."""
        try:
            client = await self.get_redis()
            if client is None:
                return False
            result = await client.delete(key)
            return result > 0
        except Exception as e:
            logger.error("Redis DELETE error", key=key, exc_info=e)
            return False


def availability_cache_key(service_id: int, now: datetime) -> str:
    """Cache key for a service's calendar, bucketed by the current hour."""
    return f"availability_service_{service_id}_{now.strftime('%Y-%m-%d_%H')}"


# Global Redis client instance
redis_client = RedisClient()
