"""
Unit tests for Cache Domain Models.

Tests value objects, the cache entry liveness rules and the per-entity
tagging rules.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from storefront.constants import get_current_timestamp
from storefront.domain.cache.entities import CacheEntry
from storefront.domain.cache.tagging import (
    category_cache_tags,
    collection,
    order_cache_tags,
    product_cache_tags,
    single,
)
from storefront.domain.cache.value_objects import TTL, CacheKey, CacheTag


class TestCacheKey:
    """Test CacheKey value object."""

    def test_collection_keys(self):
        """Test collection cache key names."""
        assert CacheKey.all_categories().value == "all_categories"
        assert CacheKey.all_products().value == "all_products"
        assert CacheKey.all_orders().value == "all_orders"

    def test_entity_keys(self):
        """Test single entity cache key names."""
        assert CacheKey.category(3).value == "category_3"
        assert CacheKey.product(7).value == "product_7"
        assert str(CacheKey.order(11)) == "order_11"

    def test_invalid_keys(self):
        """Test cache key validation."""
        with pytest.raises(ValueError, match="cannot be empty"):
            CacheKey("")

        with pytest.raises(ValueError, match="too long"):
            CacheKey("k" * 251)

        with pytest.raises(ValueError, match="whitespace"):
            CacheKey("all products")

    def test_invalid_entity_ids(self):
        """Test entity ids must be positive integers."""
        with pytest.raises(ValueError):
            CacheKey.product(0)

        with pytest.raises(ValueError):
            CacheKey.product("7")

        with pytest.raises(ValueError):
            CacheKey.product(True)

    def test_coerce(self):
        """Test strings are coerced and keys pass through."""
        key = CacheKey("custom")
        assert CacheKey.coerce(key) is key
        assert CacheKey.coerce("custom") == key


class TestCacheTag:
    """Test CacheTag value object."""

    def test_tag_names(self):
        """Test tag naming for collections and entities."""
        assert CacheTag.categories().value == "categories"
        assert CacheTag.products().value == "products"
        assert CacheTag.orders().value == "orders"
        assert CacheTag.category(1).value == "category_1"
        assert CacheTag.product(2).value == "product_2"
        assert CacheTag.order(3).value == "order_3"

    def test_tags_are_hashable_and_comparable(self):
        """Test equal tags collapse in sets."""
        assert {CacheTag("products"), CacheTag.products()} == {CacheTag("products")}

    def test_invalid_tags(self):
        """Test tag validation."""
        with pytest.raises(ValueError):
            CacheTag("")

        with pytest.raises(ValueError):
            CacheTag("t" * 51)


class TestTTL:
    """Test TTL value object."""

    def test_factories(self):
        """Test TTL creation helpers."""
        assert TTL(30).seconds == 30
        assert TTL.minutes(5).seconds == 300
        assert TTL.hours(1).seconds == 3600
        assert str(TTL(30)) == "30s"

    def test_invalid_ttl(self):
        """Test TTL bounds."""
        with pytest.raises(ValueError, match="positive"):
            TTL(0)

        with pytest.raises(ValueError, match="too large"):
            TTL(86400 * 366)


class TestCacheEntry:
    """Test CacheEntry entity."""

    def test_create_sets_expiry(self):
        """Test new entries expire after their TTL."""
        entry = CacheEntry.create({"id": 1}, {"products": 0}, TTL(60))

        assert entry.expires_at - entry.created_at == timedelta(seconds=60)
        assert not entry.is_expired()

    def test_expiry(self):
        """Test entries are expired once the TTL has elapsed."""
        entry = CacheEntry.create("value", {}, TTL(60))
        later = get_current_timestamp() + timedelta(seconds=61)

        with patch(
            "storefront.domain.cache.entities.get_current_timestamp",
            return_value=later,
        ):
            assert entry.is_expired()
            assert not entry.is_live({})

    def test_current_versions(self):
        """Test an entry dies when any of its tag versions moves on."""
        entry = CacheEntry.create("value", {"products": 2, "product_1": 0}, TTL(60))

        assert entry.is_current({"products": 2})
        assert entry.is_live({"products": 2, "product_1": 0})
        assert not entry.is_current({"products": 3, "product_1": 0})
        assert not entry.is_current({"products": 2, "product_1": 1})

    def test_payload_roundtrip_keeps_versions(self):
        """Test the serializable payload keeps value and tag versions."""
        entry = CacheEntry.create([{"id": 1}], {"orders": 4}, TTL(60))

        restored = CacheEntry.from_payload(entry.to_payload())

        assert restored.value == [{"id": 1}]
        assert restored.tag_versions == {"orders": 4}
        assert restored.created_at == entry.created_at
        assert restored.expires_at is None


class TestTaggingRules:
    """Test the per-entity tagging rules."""

    def test_category_tags(self):
        """Test category payload tags."""
        assert category_cache_tags({"id": 4, "name": "Books"}) == [
            CacheTag("categories"),
            CacheTag("category_4"),
        ]

    def test_product_tags_include_category(self):
        """Test a product is reachable through its category tag."""
        tags = product_cache_tags({"id": 9, "category_id": 4})

        assert tags == [
            CacheTag("products"),
            CacheTag("product_9"),
            CacheTag("category_4"),
        ]

    def test_order_tags_include_product(self):
        """Test an order is reachable through its product tag."""
        tags = order_cache_tags({"id": 2, "product_id": 9})

        assert tags == [CacheTag("orders"), CacheTag("order_2"), CacheTag("product_9")]

    def test_single_handles_absent_payload(self):
        """Test an absent payload carries no extra tags."""
        assert single(product_cache_tags)(None) == []
        assert single(product_cache_tags)({"id": 1, "category_id": 2})

    def test_collection_unions_member_tags(self):
        """Test a listing carries the tags of every member once."""
        tags = collection(product_cache_tags)(
            [
                {"id": 1, "category_id": 5},
                {"id": 2, "category_id": 5},
            ]
        )

        assert tags == [
            CacheTag("products"),
            CacheTag("product_1"),
            CacheTag("category_5"),
            CacheTag("product_2"),
        ]

    def test_collection_of_nothing(self):
        """Test an empty listing carries no extra tags."""
        assert collection(order_cache_tags)([]) == []
