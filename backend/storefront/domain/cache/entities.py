"""
Cache Domain Entities

Core domain entity for the tagged cache.
Encapsulates the liveness rules of a cache entry.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from ...constants import get_current_timestamp
from .value_objects import TTL


@dataclass
class CacheEntry:
    """
    Cache entry entity.

    Holds an opaque value together with the version of every tag it was
    stored under. The entry is live while it has not expired and every
    recorded tag version is still the current version of that tag;
    flushing a tag bumps its version, which kills the entry logically.
    """

    value: Any
    tag_versions: Dict[str, int] = field(default_factory=dict)
    created_at: datetime = field(default_factory=get_current_timestamp)
    expires_at: Optional[datetime] = None

    @classmethod
    def create(
        cls, value: Any, tag_versions: Mapping[str, int], ttl: TTL
    ) -> "CacheEntry":
        """Create new cache entry expiring after `ttl`."""
        now = get_current_timestamp()
        return cls(
            value=value,
            tag_versions=dict(tag_versions),
            created_at=now,
            expires_at=now + timedelta(seconds=ttl.seconds),
        )

    def is_expired(self) -> bool:
        """Check if cache entry is expired."""
        if self.expires_at is None:
            return False
        return get_current_timestamp() >= self.expires_at

    def is_current(self, current_versions: Mapping[str, int]) -> bool:
        """Check that no tag of this entry was flushed since it was stored."""
        return all(
            current_versions.get(tag, 0) == version
            for tag, version in self.tag_versions.items()
        )

    def is_live(self, current_versions: Mapping[str, int]) -> bool:
        return not self.is_expired() and self.is_current(current_versions)

    def to_payload(self) -> Dict[str, Any]:
        """Serializable form used by remote backends."""
        return {
            "value": self.value,
            "tag_versions": self.tag_versions,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CacheEntry":
        """Rebuild an entry; remote backends own the expiry themselves."""
        return cls(
            value=payload["value"],
            tag_versions={
                str(tag): int(version)
                for tag, version in payload.get("tag_versions", {}).items()
            },
            created_at=datetime.fromisoformat(payload["created_at"]),
        )
