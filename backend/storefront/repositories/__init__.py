"""
Repository Pattern Implementation

All data access goes through repositories; services own the transaction.
"""

from .base import BaseRepository
from .category import CategoryRepository
from .product import ProductRepository
from .order import OrderRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "ProductRepository",
    "OrderRepository",
]
