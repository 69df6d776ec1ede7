"""
Tagged Cache Store Base

Backend-independent implementation of the remember/flush algorithm.

Invalidation is logical: every tag has a version counter, an entry records
the versions of its tags when it is stored, and flushing a tag bumps its
version so every entry carrying it stops being live at once. Backends only
provide the primitive reads and writes.

A global flush epoch closes the lost-invalidation race: it is read before
the producer runs and the computed value is stored only if no flush of any
tag happened in between.
"""

import logging
from abc import abstractmethod
from contextlib import nullcontext
from typing import Any, AsyncContextManager, Dict, Iterable, List, Optional

from opentelemetry import trace

from ...domain.cache.entities import CacheEntry
from ...domain.cache.repository_interfaces import (
    KeyLike,
    Producer,
    TagLike,
    TaggedCacheStore,
    ValueTagger,
)
from ...domain.cache.value_objects import CacheKey, CacheTag, TTL
from .exceptions import CacheException
from .metrics import (
    cache_errors,
    cache_flushes,
    cache_hits,
    cache_misses,
    cache_stores_skipped,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _normalize_tags(tags: Iterable[TagLike]) -> List[CacheTag]:
    return list(dict.fromkeys(CacheTag.coerce(tag) for tag in tags))


class BaseTaggedCacheStore(TaggedCacheStore):
    """
    Template for tagged cache backends.

    Subclasses implement the underscore primitives and may raise
    CacheException from any of them; the public operations absorb those
    errors and fall back to computing the value.
    """

    backend_name = "base"

    # Primitives

    @abstractmethod
    async def _load(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return the stored entry under `key`, expired or not, if any."""

    @abstractmethod
    async def _tag_versions(self, tags: List[CacheTag]) -> Dict[str, int]:
        """Current version of each tag (0 for a tag never flushed)."""

    @abstractmethod
    async def _flush_epoch(self) -> int:
        """Counter bumped by every flush."""

    @abstractmethod
    async def _store(
        self, key: CacheKey, entry: CacheEntry, ttl: TTL, expected_epoch: int
    ) -> bool:
        """Store `entry` only if the flush epoch still equals `expected_epoch`."""

    @abstractmethod
    async def _bump(self, tags: List[CacheTag]) -> None:
        """Increment the version of every tag and the flush epoch."""

    def _compute_lock(self, key: CacheKey) -> AsyncContextManager:
        """Scope held while a miss is computed; no de-duplication by default."""
        return nullcontext()

    # Public operations

    async def _live_entry(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = await self._load(key)
        if entry is None or entry.is_expired():
            return None
        tags = [CacheTag(tag) for tag in entry.tag_versions]
        current = await self._tag_versions(tags)
        return entry if entry.is_current(current) else None

    def _record_error(self, operation: str, key: str, error: Exception) -> None:
        cache_errors.labels(self.backend_name, operation).inc()
        logger.error(
            f"[CACHE {operation.upper()} FAILED] {key}: {error} - Fallback to DB",
            extra={"key": key, "backend": self.backend_name},
        )

    async def remember(
        self,
        key: KeyLike,
        tags: Iterable[TagLike],
        ttl: TTL,
        producer: Producer,
        value_tags: Optional[ValueTagger] = None,
    ) -> Any:
        cache_key = CacheKey.coerce(key)
        cache_tags = _normalize_tags(tags)

        with tracer.start_as_current_span("cache.remember") as span:
            span.set_attribute("cache.backend", self.backend_name)
            span.set_attribute("cache.key", cache_key.value)

            try:
                entry = await self._live_entry(cache_key)
            except CacheException as e:
                span.set_attribute("cache.error", True)
                self._record_error("get", cache_key.value, e)
                return await producer()

            if entry is not None:
                cache_hits.labels(self.backend_name).inc()
                span.set_attribute("cache.hit", True)
                logger.debug(f"[CACHE HIT] {cache_key.value}")
                return entry.value

            async with self._compute_lock(cache_key):
                return await self._compute(
                    cache_key, cache_tags, ttl, producer, value_tags, span
                )

    async def _compute(
        self,
        cache_key: CacheKey,
        cache_tags: List[CacheTag],
        ttl: TTL,
        producer: Producer,
        value_tags: Optional[ValueTagger],
        span,
    ) -> Any:
        try:
            # Another caller may have filled the key while we waited
            entry = await self._live_entry(cache_key)
            if entry is not None:
                cache_hits.labels(self.backend_name).inc()
                span.set_attribute("cache.hit", True)
                return entry.value

            epoch = await self._flush_epoch()
            versions = await self._tag_versions(cache_tags)
        except CacheException as e:
            span.set_attribute("cache.error", True)
            self._record_error("get", cache_key.value, e)
            return await producer()

        cache_misses.labels(self.backend_name).inc()
        span.set_attribute("cache.hit", False)
        logger.debug(f"[CACHE MISS] {cache_key.value}")

        value = await producer()
        if value is None:
            return None

        try:
            extra = [
                tag
                for tag in _normalize_tags(value_tags(value) if value_tags else ())
                if tag.value not in versions
            ]
            if extra:
                versions.update(await self._tag_versions(extra))

            stored = await self._store(
                cache_key, CacheEntry.create(value, versions, ttl), ttl, epoch
            )
        except CacheException as e:
            self._record_error("set", cache_key.value, e)
            return value

        if stored:
            logger.debug(
                f"[CACHE SET] {cache_key.value} with TTL {ttl.seconds}s",
                extra={"tags": sorted(versions)},
            )
        else:
            cache_stores_skipped.labels(self.backend_name).inc()
            logger.info(
                f"[CACHE SET SKIPPED] {cache_key.value} - flushed during computation"
            )

        return value

    async def flush(self, tags: Iterable[TagLike]) -> None:
        cache_tags = _normalize_tags(tags)
        if not cache_tags:
            return

        with tracer.start_as_current_span("cache.flush") as span:
            span.set_attribute("cache.backend", self.backend_name)
            span.set_attribute("cache.tags", [tag.value for tag in cache_tags])

            try:
                await self._bump(cache_tags)
            except CacheException as e:
                span.set_attribute("cache.error", True)
                self._record_error("flush", ",".join(t.value for t in cache_tags), e)
                return

            cache_flushes.labels(self.backend_name).inc()
            logger.info(
                f"[CACHE INVALIDATION] tags={[tag.value for tag in cache_tags]}"
            )
