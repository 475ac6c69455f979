"""
Redis-backed key/value store for rate limit records.

Works against any Redis-protocol endpoint, including hosted Redis services
that authenticate with an access token in place of a password.
"""
from typing import Optional

import redis.asyncio as aioredis
import structlog

from payku_gateway.config import Settings

logger = structlog.get_logger(__name__)


class RedisKeyValueStore:
    """Implements the rate limiter's store interface on top of Redis."""

    def __init__(self, redis_client: aioredis.Redis):
        self.redis = redis_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisKeyValueStore":
        """Create a store from the configured URL and access token."""
        client = aioredis.from_url(
            settings.redis_url,
            password=settings.redis_token or None,
            encoding="utf-8",
            decode_responses=True,
        )
        logger.info("redis_store_initialized")
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        await self.redis.set(key, value, ex=ttl_seconds)

    async def ping(self) -> bool:
        """Check connectivity."""
        return bool(await self.redis.ping())

    async def close(self) -> None:
        await self.redis.aclose()
