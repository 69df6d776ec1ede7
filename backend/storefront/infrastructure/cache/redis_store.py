"""
Redis Tagged Cache Store

Shared backend for several processes. Layout under the configured prefix:

- ``<prefix>:entry:<key>``  JSON entry (value + tag versions), SET with EX ttl
- ``<prefix>:tag:<tag>``    integer tag version, bumped with INCR on flush
- ``<prefix>:epoch``        integer flush epoch, bumped with every flush

Tag version keys never expire: an expired counter would read as 0 again and
revive entries stored before the first flush. Entries are only removed by
their TTL; a flushed entry is dead as soon as its tag versions move on.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as Redis
from redis.exceptions import RedisError, WatchError

from ...core.config import Settings
from ...domain.cache.entities import CacheEntry
from ...domain.cache.value_objects import CacheKey, CacheTag, TTL
from .base import BaseTaggedCacheStore
from .exceptions import CacheConnectionException, CacheSerializationException

logger = logging.getLogger(__name__)


class RedisTaggedCacheStore(BaseTaggedCacheStore):
    """Tagged cache backed by Redis."""

    backend_name = "redis"

    def __init__(self, client: Redis.Redis, prefix: str = "storefront"):
        self._client = client
        self._prefix = prefix
        self._epoch_key = f"{prefix}:epoch"

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisTaggedCacheStore":
        """Create store with a pooled client configured for resilience."""
        client = Redis.Redis.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            retry_on_timeout=True,
            health_check_interval=30,
            decode_responses=True,
        )
        return cls(client, prefix=settings.CACHE_KEY_PREFIX)

    def _entry_key(self, key: CacheKey) -> str:
        return f"{self._prefix}:entry:{key.value}"

    def _tag_key(self, tag: CacheTag) -> str:
        return f"{self._prefix}:tag:{tag.value}"

    async def _load(self, key: CacheKey) -> Optional[CacheEntry]:
        try:
            raw = await self._client.get(self._entry_key(key))
        except RedisError as e:
            raise CacheConnectionException(operation="get", original_error=e) from e

        if raw is None:
            return None

        try:
            return CacheEntry.from_payload(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            # Unreadable entries are treated as misses and overwritten
            logger.warning(f"[CACHE CORRUPT ENTRY] {key.value}: {e}")
            return None

    async def _tag_versions(self, tags: List[CacheTag]) -> Dict[str, int]:
        if not tags:
            return {}
        try:
            values = await self._client.mget([self._tag_key(tag) for tag in tags])
        except RedisError as e:
            raise CacheConnectionException(operation="mget", original_error=e) from e
        return {tag.value: int(value or 0) for tag, value in zip(tags, values)}

    async def _flush_epoch(self) -> int:
        try:
            return int(await self._client.get(self._epoch_key) or 0)
        except RedisError as e:
            raise CacheConnectionException(operation="get", original_error=e) from e

    async def _store(
        self, key: CacheKey, entry: CacheEntry, ttl: TTL, expected_epoch: int
    ) -> bool:
        try:
            data = json.dumps(entry.to_payload())
        except (TypeError, ValueError) as e:
            raise CacheSerializationException(key.value, original_error=e) from e

        try:
            async with self._client.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(self._epoch_key)
                    current = int(await pipe.get(self._epoch_key) or 0)
                    if current != expected_epoch:
                        return False
                    pipe.multi()
                    pipe.set(self._entry_key(key), data, ex=ttl.seconds)
                    await pipe.execute()
                    return True
                except WatchError:
                    # A flush landed between the epoch read and EXEC
                    return False
        except RedisError as e:
            raise CacheConnectionException(operation="set", original_error=e) from e

    async def _bump(self, tags: List[CacheTag]) -> None:
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                for tag in tags:
                    pipe.incr(self._tag_key(tag))
                pipe.incr(self._epoch_key)
                await pipe.execute()
        except RedisError as e:
            raise CacheConnectionException(operation="flush", original_error=e) from e

    async def health_check(self) -> Dict[str, Any]:
        try:
            await self._client.ping()
            return {"status": "healthy", "backend": self.backend_name}
        except RedisError as e:
            logger.error(f"[REDIS DOWN] {e}")
            return {"status": "unhealthy", "backend": self.backend_name, "error": str(e)}

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis cache store closed")
