"""
Cache Repository Interfaces

Abstract contract of the tagged cache store consumed by the services.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Union

from .value_objects import CacheKey, CacheTag, TTL

KeyLike = Union[str, CacheKey]
TagLike = Union[str, CacheTag]
Producer = Callable[[], Awaitable[Any]]
ValueTagger = Callable[[Any], Iterable[TagLike]]


class TaggedCacheStore(ABC):
    """
    Abstract key/value cache where every entry is also indexed by tags.

    Implementations must treat flushed entries as misses immediately after
    `flush` returns, and must never let a cache failure prevent a caller
    from getting a correct value.
    """

    @abstractmethod
    async def remember(
        self,
        key: KeyLike,
        tags: Iterable[TagLike],
        ttl: TTL,
        producer: Producer,
        value_tags: Optional[ValueTagger] = None,
    ) -> Any:
        """
        Return the live entry under `key`, or compute, store and return it.

        Args:
            key: Cache key
            tags: Tags the entry is reachable by
            ttl: Lifetime of a stored entry
            producer: Awaited exactly once on a miss
            value_tags: Optional rule deriving extra tags from the value
        """
        pass

    @abstractmethod
    async def flush(self, tags: Iterable[TagLike]) -> None:
        """Invalidate every entry associated with any of `tags`."""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Report backend status."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        pass
