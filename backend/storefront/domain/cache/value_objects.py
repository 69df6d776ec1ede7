"""
Cache Value Objects

Keys, tags and lifetimes of the tagged cache. Factories encode the naming
scheme shared by every service: `all_<entities>` for listings,
`<entity>_<id>` for single entries and per-entity tags.
"""

from dataclasses import dataclass
from typing import Union

from ...constants import (
    ALL_CATEGORIES_KEY,
    ALL_ORDERS_KEY,
    ALL_PRODUCTS_KEY,
    CATEGORIES_TAG,
    ORDERS_TAG,
    PRODUCTS_TAG,
)

MAX_KEY_LENGTH = 250
MAX_TAG_LENGTH = 50
MAX_TTL_SECONDS = 86400 * 365


def _validate_entity_id(entity_id: int) -> int:
    if isinstance(entity_id, bool) or not isinstance(entity_id, int):
        raise ValueError(f"Entity id must be an integer, got {entity_id!r}")
    if entity_id <= 0:
        raise ValueError("Entity id must be positive")
    return entity_id


def _validate_name(kind: str, value: str, max_length: int) -> None:
    if not value:
        raise ValueError(f"{kind} cannot be empty")
    if len(value) > max_length:
        raise ValueError(f"{kind} too long ({len(value)} > {max_length} characters)")
    if any(char.isspace() for char in value):
        raise ValueError(f"{kind} cannot contain whitespace: {value!r}")


@dataclass(frozen=True)
class CacheKey:
    """Name of one cache entry."""

    value: str

    def __post_init__(self) -> None:
        _validate_name("Cache key", self.value, MAX_KEY_LENGTH)

    @classmethod
    def coerce(cls, key: Union[str, "CacheKey"]) -> "CacheKey":
        return key if isinstance(key, CacheKey) else cls(key)

    @classmethod
    def all_categories(cls) -> "CacheKey":
        return cls(ALL_CATEGORIES_KEY)

    @classmethod
    def all_products(cls) -> "CacheKey":
        return cls(ALL_PRODUCTS_KEY)

    @classmethod
    def all_orders(cls) -> "CacheKey":
        return cls(ALL_ORDERS_KEY)

    @classmethod
    def category(cls, category_id: int) -> "CacheKey":
        return cls(f"category_{_validate_entity_id(category_id)}")

    @classmethod
    def product(cls, product_id: int) -> "CacheKey":
        return cls(f"product_{_validate_entity_id(product_id)}")

    @classmethod
    def order(cls, order_id: int) -> "CacheKey":
        return cls(f"order_{_validate_entity_id(order_id)}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CacheTag:
    """
    Invalidation group.

    Entries carry any number of tags; flushing a tag kills every entry that
    carries it, whatever its key. Entity tags share the spelling of the
    entity's key (`product_7`) but live in a separate namespace.
    """

    value: str

    def __post_init__(self) -> None:
        _validate_name("Cache tag", self.value, MAX_TAG_LENGTH)

    @classmethod
    def coerce(cls, tag: Union[str, "CacheTag"]) -> "CacheTag":
        return tag if isinstance(tag, CacheTag) else cls(tag)

    @classmethod
    def categories(cls) -> "CacheTag":
        return cls(CATEGORIES_TAG)

    @classmethod
    def products(cls) -> "CacheTag":
        return cls(PRODUCTS_TAG)

    @classmethod
    def orders(cls) -> "CacheTag":
        return cls(ORDERS_TAG)

    @classmethod
    def category(cls, category_id: int) -> "CacheTag":
        return cls(f"category_{_validate_entity_id(category_id)}")

    @classmethod
    def product(cls, product_id: int) -> "CacheTag":
        return cls(f"product_{_validate_entity_id(product_id)}")

    @classmethod
    def order(cls, order_id: int) -> "CacheTag":
        return cls(f"order_{_validate_entity_id(order_id)}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TTL:
    """Entry lifetime in whole seconds, at most one year."""

    seconds: int

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            raise ValueError("TTL must be positive")
        if self.seconds > MAX_TTL_SECONDS:
            raise ValueError(f"TTL too large (max {MAX_TTL_SECONDS} seconds)")

    @classmethod
    def minutes(cls, minutes: int) -> "TTL":
        return cls(minutes * 60)

    @classmethod
    def hours(cls, hours: int) -> "TTL":
        return cls(hours * 3600)

    def __str__(self) -> str:
        return f"{self.seconds}s"
