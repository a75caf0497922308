"""
Redis-backed cache store for player datasets.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.errors import CacheUnavailableError
from shared.logging import get_logger


class CacheStore(Protocol):
    """Batched key/value store contract used by the batch fetcher."""

    async def multi_get(self, keys: Sequence[str]) -> List[Optional[str]]:
        """Return raw values in key order, ``None`` for absent keys."""

    async def multi_set(self, pairs: Sequence[Tuple[str, str]], ttl: Optional[int] = None) -> None:
        """Write all pairs in one round trip, overwriting existing values."""


class RedisCacheStore:
    """Cache store speaking MGET/MSET to Redis."""

    def __init__(self, redis_url: str, *, client: Optional[redis.Redis] = None) -> None:
        self.redis_url = redis_url
        self.logger = get_logger("players.cache_store")
        self._redis = client or redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )

    async def close(self) -> None:
        """Close Redis connections."""
        await self._redis.aclose()

    async def multi_get(self, keys: Sequence[str]) -> List[Optional[str]]:
        if not keys:
            return []
        try:
            values = await self._redis.mget(list(keys))
        except RedisError as exc:
            self.logger.error("Redis MGET failed", keys_count=len(keys), error=str(exc))
            raise CacheUnavailableError("Cache read failed", details={"operation": "mget", "error": str(exc)}) from exc

        self.logger.debug("Redis MGET", keys_count=len(keys))
        return list(values)

    async def multi_set(self, pairs: Sequence[Tuple[str, str]], ttl: Optional[int] = None) -> None:
        if not pairs:
            return
        try:
            if ttl is None:
                await self._redis.mset(dict(pairs))
            else:
                # MSET has no expiry option; pipeline SET EX to keep one round trip
                async with self._redis.pipeline(transaction=False) as pipe:
                    for key, value in pairs:
                        pipe.set(key, value, ex=ttl)
                    await pipe.execute()
        except RedisError as exc:
            self.logger.error("Redis write failed", keys_count=len(pairs), error=str(exc))
            raise CacheUnavailableError("Cache write failed", details={"operation": "mset", "error": str(exc)}) from exc

        self.logger.debug("Redis batch write", keys_count=len(pairs), ttl=ttl)

    async def ping(self) -> bool:
        """Return True when Redis responds to a ping."""
        try:
            return bool(await self._redis.ping())
        except RedisError as exc:
            self.logger.error("Redis health check failed", error=str(exc))
            return False
