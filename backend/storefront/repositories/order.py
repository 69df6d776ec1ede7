"""
Order Repository
"""

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import Order
from .base import BaseRepository


class OrderRepository(BaseRepository):
    """Order-specific repository. Orders are always read with their product."""

    RELATIONS = ("product",)

    def __init__(self, session: AsyncSession):
        """Initialize order repository."""
        super().__init__(session, Order)
