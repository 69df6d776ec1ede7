"""
Storefront Services

Cache-aware entity services. Each write commits first and flushes the
affected cache tags afterwards.
"""

from .base import CachedService, DEFAULT_TTL
from .category import CategoryService
from .exceptions import (
    InsufficientStockError,
    ReferencedEntityNotFoundError,
    StorefrontError,
)
from .order import OrderService
from .product import ProductService

__all__ = [
    "CachedService",
    "DEFAULT_TTL",
    "CategoryService",
    "ProductService",
    "OrderService",
    "StorefrontError",
    "ReferencedEntityNotFoundError",
    "InsufficientStockError",
]
