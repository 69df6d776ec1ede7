"""
Category Service

Cache-aware reads and cache-invalidating writes for categories.
"""

from typing import Any, List, Mapping, Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.cache.tagging import category_cache_tags, collection, single
from ..domain.cache.value_objects import CacheKey, CacheTag
from ..repositories import CategoryRepository
from ..schemas import CategoryCreate, CategoryRead, CategoryUpdate
from .base import CachedService, coerce_input, is_entity_id, update_changes

logger = structlog.get_logger()


class CategoryService(CachedService):
    """Category operations; every read model carries the live product count."""

    async def list_all(self) -> List[CategoryRead]:
        async def load() -> List[dict]:
            async with self.database.session() as session:
                categories = await CategoryRepository(session).list_with_relations()
                return [CategoryRead.from_model(c).to_cache() for c in categories]

        payloads = await self.cache.remember(
            CacheKey.all_categories(),
            [CacheTag.categories()],
            self.ttl,
            load,
            value_tags=collection(category_cache_tags),
        )
        return [CategoryRead.model_validate(p) for p in payloads]

    async def get_by_id(self, category_id: int) -> Optional[CategoryRead]:
        if not is_entity_id(category_id):
            return None

        async def load() -> Optional[dict]:
            async with self.database.session() as session:
                category = await CategoryRepository(session).find_with_relations(
                    category_id
                )
                return CategoryRead.from_model(category).to_cache() if category else None

        payload = await self.cache.remember(
            CacheKey.category(category_id),
            [CacheTag.categories(), CacheTag.category(category_id)],
            self.ttl,
            load,
            value_tags=single(category_cache_tags),
        )
        return CategoryRead.model_validate(payload) if payload is not None else None

    async def create(
        self, data: Union[CategoryCreate, Mapping[str, Any]]
    ) -> CategoryRead:
        data = coerce_input(CategoryCreate, data)

        async def write(session: AsyncSession) -> CategoryRead:
            repository = CategoryRepository(session)
            category = await repository.create(data.model_dump())
            category = await repository.find_with_relations(category.id)
            return CategoryRead.from_model(category)

        created = await self.database.run_in_transaction(write)
        await self._invalidate([CacheTag.categories()])

        logger.info("CategoryService: Category created", category_id=created.id)
        return created

    async def update(
        self, category_id: int, data: Union[CategoryUpdate, Mapping[str, Any]]
    ) -> Optional[CategoryRead]:
        """Apply the supplied fields; None if the category does not exist."""
        data = coerce_input(CategoryUpdate, data)

        async def write(session: AsyncSession) -> Optional[CategoryRead]:
            repository = CategoryRepository(session)
            category = await repository.find(category_id)
            if category is None:
                return None
            await repository.update(category, update_changes(data))
            category = await repository.find_with_relations(category_id)
            return CategoryRead.from_model(category)

        updated = await self.database.run_in_transaction(write)
        if updated is None:
            return None

        await self._invalidate(
            [CacheTag.categories(), CacheTag.category(category_id)]
        )
        return updated

    async def delete(self, category_id: int) -> bool:
        """
        Delete a category together with its products and their orders.

        Besides the category tags, the tag of every cascaded product is
        flushed so single product and order entries die with it.
        """

        async def write(session: AsyncSession) -> Optional[List[int]]:
            repository = CategoryRepository(session)
            category = await repository.find(category_id)
            if category is None:
                return None
            product_ids = await repository.product_ids(category_id)
            await repository.delete(category)
            return product_ids

        product_ids = await self.database.run_in_transaction(write)
        if product_ids is None:
            return False

        await self._invalidate(
            [CacheTag.categories(), CacheTag.category(category_id)]
            + [CacheTag.product(product_id) for product_id in product_ids]
        )

        logger.info(
            "CategoryService: Category deleted",
            category_id=category_id,
            cascaded_products=len(product_ids),
        )
        return True
