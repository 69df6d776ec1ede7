"""
Cache Tagging Rules

One pure function per entity kind deriving the tags a cached payload must
carry. Payloads are the JSON-mode dumps of the read schemas, so the rules
only look at plain mapping fields.
"""

from typing import Any, Callable, Iterable, List, Mapping, Optional

from .value_objects import CacheTag

TaggingRule = Callable[[Mapping[str, Any]], List[CacheTag]]


def category_cache_tags(payload: Mapping[str, Any]) -> List[CacheTag]:
    """Tags of a cached category: the collection tag and its own tag."""
    return [CacheTag.categories(), CacheTag.category(payload["id"])]


def product_cache_tags(payload: Mapping[str, Any]) -> List[CacheTag]:
    """
    Tags of a cached product.

    The category tag lets a category write invalidate every product cached
    under it (the payload embeds the category name) without enumerating
    product ids.
    """
    return [
        CacheTag.products(),
        CacheTag.product(payload["id"]),
        CacheTag.category(payload["category_id"]),
    ]


def order_cache_tags(payload: Mapping[str, Any]) -> List[CacheTag]:
    """Tags of a cached order; the product tag covers the embedded product name."""
    return [
        CacheTag.orders(),
        CacheTag.order(payload["id"]),
        CacheTag.product(payload["product_id"]),
    ]


def single(rule: TaggingRule) -> Callable[[Optional[Mapping[str, Any]]], List[CacheTag]]:
    """Apply a rule to an optional single payload."""

    def derive(payload: Optional[Mapping[str, Any]]) -> List[CacheTag]:
        return rule(payload) if payload is not None else []

    return derive


def collection(rule: TaggingRule) -> Callable[[Iterable[Mapping[str, Any]]], List[CacheTag]]:
    """Union of a rule over every member of a cached listing."""

    def derive(payloads: Iterable[Mapping[str, Any]]) -> List[CacheTag]:
        tags: dict = {}
        for payload in payloads:
            tags.update(dict.fromkeys(rule(payload)))
        return list(tags)

    return derive
