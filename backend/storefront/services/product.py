"""
Product Service

Cache-aware reads and cache-invalidating writes for products. A product
entry embeds its category name, so it carries the category tag as well.
"""

from typing import Any, List, Mapping, Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.cache.tagging import collection, product_cache_tags, single
from ..domain.cache.value_objects import CacheKey, CacheTag
from ..models import Category
from ..repositories import ProductRepository
from ..schemas import ProductCreate, ProductRead, ProductUpdate
from .base import CachedService, coerce_input, is_entity_id, update_changes
from .exceptions import ReferencedEntityNotFoundError

logger = structlog.get_logger()

RELATIONS = ("category",)


async def _require_category(session: AsyncSession, category_id: int) -> None:
    if await session.get(Category, category_id) is None:
        raise ReferencedEntityNotFoundError("Category", category_id)


class ProductService(CachedService):
    """Product operations."""

    async def list_all(self) -> List[ProductRead]:
        async def load() -> List[dict]:
            async with self.database.session() as session:
                products = await ProductRepository(session).list_with_relations(
                    RELATIONS
                )
                return [ProductRead.from_model(p).to_cache() for p in products]

        payloads = await self.cache.remember(
            CacheKey.all_products(),
            [CacheTag.products()],
            self.ttl,
            load,
            value_tags=collection(product_cache_tags),
        )
        return [ProductRead.model_validate(p) for p in payloads]

    async def get_by_id(self, product_id: int) -> Optional[ProductRead]:
        if not is_entity_id(product_id):
            return None

        async def load() -> Optional[dict]:
            async with self.database.session() as session:
                product = await ProductRepository(session).find_with_relations(
                    product_id, RELATIONS
                )
                return ProductRead.from_model(product).to_cache() if product else None

        payload = await self.cache.remember(
            CacheKey.product(product_id),
            [CacheTag.products(), CacheTag.product(product_id)],
            self.ttl,
            load,
            value_tags=single(product_cache_tags),
        )
        return ProductRead.model_validate(payload) if payload is not None else None

    async def create(self, data: Union[ProductCreate, Mapping[str, Any]]) -> ProductRead:
        """
        Create a product.

        Raises:
            ReferencedEntityNotFoundError: If the category does not exist
        """
        data = coerce_input(ProductCreate, data)

        async def write(session: AsyncSession) -> ProductRead:
            await _require_category(session, data.category_id)
            repository = ProductRepository(session)
            product = await repository.create(data.model_dump())
            product = await repository.find_with_relations(product.id, RELATIONS)
            return ProductRead.from_model(product)

        created = await self.database.run_in_transaction(write)
        await self._invalidate(
            [CacheTag.products(), CacheTag.category(created.category_id)]
        )

        logger.info(
            "ProductService: Product created",
            product_id=created.id,
            category_id=created.category_id,
        )
        return created

    async def update(
        self, product_id: int, data: Union[ProductUpdate, Mapping[str, Any]]
    ) -> Optional[ProductRead]:
        """
        Apply the supplied fields; None if the product does not exist.

        Moving a product flushes both the old and the new category tag.
        """
        data = coerce_input(ProductUpdate, data)
        changes = update_changes(data)

        async def write(session: AsyncSession):
            repository = ProductRepository(session)
            product = await repository.find(product_id)
            if product is None:
                return None

            old_category_id = product.category_id
            new_category_id = changes.get("category_id")
            if new_category_id is not None and new_category_id != old_category_id:
                await _require_category(session, new_category_id)

            await repository.update(product, changes)
            product = await repository.find_with_relations(product_id, RELATIONS)
            return ProductRead.from_model(product), old_category_id

        result = await self.database.run_in_transaction(write)
        if result is None:
            return None

        updated, old_category_id = result
        tags = [
            CacheTag.products(),
            CacheTag.product(product_id),
            CacheTag.category(old_category_id),
        ]
        if updated.category_id != old_category_id:
            tags.append(CacheTag.category(updated.category_id))
            logger.info(
                "ProductService: Product moved",
                product_id=product_id,
                from_category_id=old_category_id,
                to_category_id=updated.category_id,
            )

        await self._invalidate(tags)
        return updated

    async def delete(self, product_id: int) -> bool:
        """Delete a product and, by cascade, its orders."""

        async def write(session: AsyncSession) -> Optional[int]:
            repository = ProductRepository(session)
            product = await repository.find(product_id)
            if product is None:
                return None
            category_id = product.category_id
            await repository.delete(product)
            return category_id

        category_id = await self.database.run_in_transaction(write)
        if category_id is None:
            return False

        await self._invalidate(
            [
                CacheTag.products(),
                CacheTag.product(product_id),
                CacheTag.category(category_id),
            ]
        )

        logger.info("ProductService: Product deleted", product_id=product_id)
        return True
