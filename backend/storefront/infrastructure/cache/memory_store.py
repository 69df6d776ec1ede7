"""
In-Memory Tagged Cache Store

Single-process backend. Concurrent misses on the same key are
de-duplicated with a per-key asyncio.Lock (single flight): the first
caller computes, the others wait and read its stored value. A key's lock
exists only while some caller is computing or waiting on it.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from ...domain.cache.entities import CacheEntry
from ...domain.cache.value_objects import CacheKey, CacheTag, TTL
from .base import BaseTaggedCacheStore

logger = logging.getLogger(__name__)


class InMemoryTaggedCacheStore(BaseTaggedCacheStore):
    """Tagged cache held in process memory."""

    backend_name = "memory"

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._versions: Dict[str, int] = {}
        self._epoch = 0
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _compute_lock(self, key: CacheKey) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key.value, asyncio.Lock())
        self._lock_users[key.value] = self._lock_users.get(key.value, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users.get(key.value, 1) - 1
            if remaining:
                self._lock_users[key.value] = remaining
            else:
                self._lock_users.pop(key.value, None)
                self._locks.pop(key.value, None)

    async def _load(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = self._entries.get(key.value)
        if entry is not None and entry.is_expired():
            del self._entries[key.value]
            return None
        return entry

    async def _tag_versions(self, tags: List[CacheTag]) -> Dict[str, int]:
        return {tag.value: self._versions.get(tag.value, 0) for tag in tags}

    async def _flush_epoch(self) -> int:
        return self._epoch

    async def _store(
        self, key: CacheKey, entry: CacheEntry, ttl: TTL, expected_epoch: int
    ) -> bool:
        # No await between the check and the write: atomic on the event loop
        if self._epoch != expected_epoch:
            return False
        self._entries[key.value] = entry
        return True

    async def _bump(self, tags: List[CacheTag]) -> None:
        for tag in tags:
            self._versions[tag.value] = self._versions.get(tag.value, 0) + 1
        self._epoch += 1
        self._purge_dead_entries()

    def _purge_dead_entries(self) -> None:
        """Drop entries that can no longer be served."""
        dead = [
            key
            for key, entry in self._entries.items()
            if not entry.is_live(self._versions)
        ]
        for key in dead:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "backend": self.backend_name,
            "entries": len(self._entries),
            "tags": len(self._versions),
        }

    async def close(self) -> None:
        self._entries.clear()
        self._locks.clear()
        self._lock_users.clear()
        logger.info("In-memory cache store closed")
