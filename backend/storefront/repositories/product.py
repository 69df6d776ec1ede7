"""
Product Repository

Product access plus the stock counter operations used by order creation.
"""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from storefront.models import Product
from .base import BaseRepository

logger = structlog.get_logger()


class ProductRepository(BaseRepository):
    """
    Product-specific repository.

    Stock is only ever decremented through a single conditional UPDATE so
    concurrent orders for the same product cannot lose a decrement or
    drive the counter below zero.
    """

    def __init__(self, session: AsyncSession):
        """Initialize product repository."""
        super().__init__(session, Product)

    async def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """
        Atomically take `quantity` units from a product's stock.

        Args:
            product_id: Product primary key (REQUIRED)
            quantity: Units to remove, must be positive

        Returns:
            True if the stock was decremented, False if the product does not
            exist or holds fewer than `quantity` units

        Raises:
            ValueError: If quantity is not positive
        """
        if product_id is None:
            raise ValueError("product_id is required (cannot be None)")
        if quantity is None or quantity <= 0:
            raise ValueError("quantity must be a positive integer")

        try:
            stmt = (
                update(Product)
                .where(Product.id == product_id, Product.quantity >= quantity)
                .values(quantity=Product.quantity - quantity)
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            decremented = result.rowcount == 1

            if decremented:
                logger.info(
                    "ProductRepository: Stock decremented",
                    product_id=product_id,
                    quantity=quantity,
                )
            else:
                logger.warning(
                    "ProductRepository: Stock decrement refused",
                    product_id=product_id,
                    quantity=quantity,
                )

            return decremented

        except Exception as e:
            logger.error(
                "ProductRepository: Failed to decrement stock",
                product_id=product_id,
                quantity=quantity,
                error=str(e),
                exc_info=True,
            )
            raise
