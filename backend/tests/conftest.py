"""
Main pytest configuration for all backend tests.

Every test that touches the database gets its own SQLite file under
tmp_path, created with the real schema.
"""

import os
from decimal import Decimal

import pytest

# Set test environment variables before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./storefront-test.db"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "DEBUG"

from storefront.core.config import Settings
from storefront.core.database import DatabaseManager
from storefront.domain.cache.value_objects import TTL
from storefront.infrastructure.cache import InMemoryTaggedCacheStore
from storefront.services import CategoryService, OrderService, ProductService


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a fresh SQLite file."""
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        CACHE_BACKEND="memory",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
async def database(settings):
    """Initialized database manager with all tables created."""
    manager = DatabaseManager(settings)
    await manager.initialize()
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def cache():
    """Empty in-memory tagged cache store."""
    return InMemoryTaggedCacheStore()


@pytest.fixture
def ttl():
    return TTL.hours(1)


@pytest.fixture
def category_service(database, cache, ttl):
    return CategoryService(database, cache, ttl)


@pytest.fixture
def product_service(database, cache, ttl):
    return ProductService(database, cache, ttl)


@pytest.fixture
def order_service(database, cache, ttl):
    return OrderService(database, cache, ttl)


@pytest.fixture
def make_category(category_service):
    """Create a category through the service."""
    counter = {"n": 0}

    async def factory(**overrides):
        counter["n"] += 1
        data = {"name": f"Category {counter['n']}", "description": "Test category"}
        data.update(overrides)
        return await category_service.create(data)

    return factory


@pytest.fixture
def make_product(product_service):
    """Create a product through the service; category_id is required."""
    counter = {"n": 0}

    async def factory(category_id, **overrides):
        counter["n"] += 1
        data = {
            "name": f"Product {counter['n']}",
            "sku": f"SKU-{counter['n']:04d}",
            "price": Decimal("100.00"),
            "quantity": 20,
            "category_id": category_id,
        }
        data.update(overrides)
        return await product_service.create(data)

    return factory


@pytest.fixture
def order_payload():
    """Order input for a product id."""

    def build(product_id, quantity=2, **overrides):
        data = {
            "product_id": product_id,
            "customer_name": "Ada Lovelace",
            "customer_email": "ada@example.com",
            "quantity": quantity,
        }
        data.update(overrides)
        return data

    return build
