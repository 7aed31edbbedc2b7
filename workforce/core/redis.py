"""Redis connection management and the session-token revocation list."""

from __future__ import annotations

import redis.asyncio as redis

from workforce.core.config import get_settings

settings = get_settings()

_redis_pool: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Get or create the Redis connection."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.close()
        _redis_pool = None


class RevocationList:
    """Revoked session-token ids, each kept only for the token's remaining lifetime."""

    key_prefix = "session:revoked:"

    def __init__(self, client: redis.Redis | None = None):
        self._client = client

    async def _redis(self) -> redis.Redis:
        if self._client is None:
            self._client = await get_redis()
        return self._client

    async def revoke(self, jti: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        client = await self._redis()
        await client.setex(f"{self.key_prefix}{jti}", ttl_seconds, "1")

    async def is_revoked(self, jti: str) -> bool:
        client = await self._redis()
        return await client.exists(f"{self.key_prefix}{jti}") > 0
