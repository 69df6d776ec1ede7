"""
Cache Infrastructure Module

Tagged cache backends:
- InMemoryTaggedCacheStore: single process, single-flight misses
- RedisTaggedCacheStore: shared Redis backend
"""

from ...core.config import Settings
from ...domain.cache.repository_interfaces import TaggedCacheStore
from .base import BaseTaggedCacheStore
from .exceptions import (
    CacheException,
    CacheConnectionException,
    CacheSerializationException,
)
from .memory_store import InMemoryTaggedCacheStore
from .redis_store import RedisTaggedCacheStore


def create_cache_store(settings: Settings) -> TaggedCacheStore:
    """Build the tagged cache store selected by CACHE_BACKEND."""
    if settings.CACHE_BACKEND == "redis":
        return RedisTaggedCacheStore.from_settings(settings)
    return InMemoryTaggedCacheStore()


__all__ = [
    "BaseTaggedCacheStore",
    "InMemoryTaggedCacheStore",
    "RedisTaggedCacheStore",
    "CacheException",
    "CacheConnectionException",
    "CacheSerializationException",
    "create_cache_store",
]
