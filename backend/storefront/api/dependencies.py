"""
API Dependencies

Services are built per request from the database manager and cache store
that the application lifespan places on `app.state`.
"""

from fastapi import Request

from ..core.database import DatabaseManager
from ..domain.cache.repository_interfaces import TaggedCacheStore
from ..domain.cache.value_objects import TTL
from ..services import CategoryService, OrderService, ProductService


def get_database(request: Request) -> DatabaseManager:
    return request.app.state.database


def get_cache(request: Request) -> TaggedCacheStore:
    return request.app.state.cache


def _ttl(request: Request) -> TTL:
    return TTL(request.app.state.settings.CACHE_TTL_SECONDS)


def get_category_service(request: Request) -> CategoryService:
    return CategoryService(get_database(request), get_cache(request), _ttl(request))


def get_product_service(request: Request) -> ProductService:
    return ProductService(get_database(request), get_cache(request), _ttl(request))


def get_order_service(request: Request) -> OrderService:
    return OrderService(get_database(request), get_cache(request), _ttl(request))
