"""
Order Service

Orders are the one cross-entity write: creating an order captures the
product price and takes stock in a single transaction. After creation
only customer details and status may change.
"""

from typing import Any, List, Mapping, Optional, Union

import structlog
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import get_current_timestamp
from ..domain.cache.tagging import collection, order_cache_tags, single
from ..domain.cache.value_objects import CacheKey, CacheTag
from ..repositories import OrderRepository, ProductRepository
from ..schemas import OrderCreate, OrderRead, OrderUpdate
from .base import CachedService, coerce_input, is_entity_id
from .exceptions import InsufficientStockError, ReferencedEntityNotFoundError

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

MUTABLE_FIELDS = ("customer_name", "customer_email", "status")


class OrderService(CachedService):
    """Order operations."""

    async def list_all(self) -> List[OrderRead]:
        async def load() -> List[dict]:
            async with self.database.session() as session:
                orders = await OrderRepository(session).list_with_relations(
                    OrderRepository.RELATIONS
                )
                return [OrderRead.from_model(o).to_cache() for o in orders]

        payloads = await self.cache.remember(
            CacheKey.all_orders(),
            [CacheTag.orders()],
            self.ttl,
            load,
            value_tags=collection(order_cache_tags),
        )
        return [OrderRead.model_validate(p) for p in payloads]

    async def get_by_id(self, order_id: int) -> Optional[OrderRead]:
        if not is_entity_id(order_id):
            return None

        async def load() -> Optional[dict]:
            async with self.database.session() as session:
                order = await OrderRepository(session).find_with_relations(
                    order_id, OrderRepository.RELATIONS
                )
                return OrderRead.from_model(order).to_cache() if order else None

        payload = await self.cache.remember(
            CacheKey.order(order_id),
            [CacheTag.orders(), CacheTag.order(order_id)],
            self.ttl,
            load,
            value_tags=single(order_cache_tags),
        )
        return OrderRead.model_validate(payload) if payload is not None else None

    async def create(self, data: Union[OrderCreate, Mapping[str, Any]]) -> OrderRead:
        """
        Place an order as one atomic unit.

        The product's current price becomes the order's unit price and the
        ordered quantity is taken from stock with a conditional decrement.
        Nothing is written if any step fails.

        Raises:
            ReferencedEntityNotFoundError: If the product does not exist
            InsufficientStockError: If the product holds too few units
        """
        data = coerce_input(OrderCreate, data)

        async def write(session: AsyncSession) -> OrderRead:
            products = ProductRepository(session)
            orders = OrderRepository(session)

            product = await products.find(data.product_id)
            if product is None:
                raise ReferencedEntityNotFoundError("Product", data.product_id)

            unit_price = product.price
            available = product.quantity

            order = await orders.create(
                {
                    "product_id": product.id,
                    "customer_name": data.customer_name,
                    "customer_email": data.customer_email,
                    "quantity": data.quantity,
                    "unit_price": unit_price,
                    "total_price": unit_price * data.quantity,
                    "status": data.status,
                    "order_date": data.order_date or get_current_timestamp(),
                }
            )

            if not await products.decrement_stock(product.id, data.quantity):
                raise InsufficientStockError(product.id, data.quantity, available)

            order = await orders.find_with_relations(order.id, OrderRepository.RELATIONS)
            return OrderRead.from_model(order)

        with tracer.start_as_current_span("order.create") as span:
            span.set_attribute("order.product_id", data.product_id)
            span.set_attribute("order.quantity", data.quantity)
            created = await self.database.run_in_transaction(write)
            span.set_attribute("order.id", created.id)

        await self._invalidate(
            [CacheTag.orders(), CacheTag.product(created.product_id)],
            [CacheTag.product(created.product_id)],
        )

        logger.info(
            "OrderService: Order created",
            order_id=created.id,
            product_id=created.product_id,
            quantity=created.quantity,
            total_price=str(created.total_price),
        )
        return created

    async def update(
        self, order_id: int, data: Union[OrderUpdate, Mapping[str, Any]]
    ) -> Optional[OrderRead]:
        """
        Change customer details or status; None if the order does not exist.

        Quantity, prices and product are fixed at creation and any value
        supplied for them is ignored.
        """
        data = coerce_input(OrderUpdate, data)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if field in MUTABLE_FIELDS and value is not None
        }

        async def write(session: AsyncSession) -> Optional[OrderRead]:
            repository = OrderRepository(session)
            order = await repository.find(order_id)
            if order is None:
                return None
            await repository.update(order, changes)
            order = await repository.find_with_relations(
                order_id, OrderRepository.RELATIONS
            )
            return OrderRead.from_model(order)

        updated = await self.database.run_in_transaction(write)
        if updated is None:
            return None

        await self._invalidate(
            [
                CacheTag.orders(),
                CacheTag.order(order_id),
                CacheTag.product(updated.product_id),
            ]
        )
        return updated

    async def delete(self, order_id: int) -> bool:
        """Delete an order. Stock taken by the order is not returned."""

        async def write(session: AsyncSession) -> Optional[int]:
            repository = OrderRepository(session)
            order = await repository.find(order_id)
            if order is None:
                return None
            product_id = order.product_id
            await repository.delete(order)
            return product_id

        product_id = await self.database.run_in_transaction(write)
        if product_id is None:
            return False

        await self._invalidate(
            [
                CacheTag.orders(),
                CacheTag.order(order_id),
                CacheTag.product(product_id),
            ]
        )

        logger.info("OrderService: Order deleted", order_id=order_id)
        return True
