"""
Category Repository

Category access with the derived product count loaded on every read.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from storefront.models import Category, Product
from .base import BaseRepository

logger = structlog.get_logger()


class CategoryRepository(BaseRepository):
    """Category-specific repository."""

    def __init__(self, session: AsyncSession):
        """Initialize category repository."""
        super().__init__(session, Category)

    async def product_ids(self, category_id: int) -> list[int]:
        """
        Ids of the products currently referencing a category.

        Used before a delete to learn which products the cascade removes.
        """
        if category_id is None:
            raise ValueError("category_id is required (cannot be None)")

        result = await self.session.execute(
            select(Product.id)
            .where(Product.category_id == category_id)
            .order_by(Product.id)
        )
        ids = list(result.scalars().all())

        logger.debug(
            "CategoryRepository: Product ids loaded",
            category_id=category_id,
            count=len(ids),
        )

        return ids
