"""
Unit tests for CategoryService.

Runs against a real SQLite database and the in-memory cache store so the
cached reads can be checked against committed state.
"""

from unittest.mock import AsyncMock, patch

import pytest

from storefront.schemas import CategoryCreate, CategoryUpdate


class TestCategoryReads:
    """Test cached category reads."""

    @pytest.mark.asyncio
    async def test_get_by_id_is_cached(self, category_service, make_category):
        """Test a second read is served from the cache."""
        category = await make_category(name="Books")

        first = await category_service.get_by_id(category.id)
        with patch.object(category_service.database, "session") as session:
            second = await category_service.get_by_id(category.id)
            session.assert_not_called()

        assert first == second
        assert second.name == "Books"
        assert second.products_count == 0

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, category_service):
        """Test an unknown id is absent, not an error."""
        assert await category_service.get_by_id(999) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("category_id", [0, -1])
    async def test_get_non_positive_id_returns_none(self, category_service, category_id):
        """Test ids that cannot exist are absent without touching the cache."""
        with patch.object(category_service.cache, "remember", AsyncMock()) as remember:
            assert await category_service.get_by_id(category_id) is None
            remember.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_all(self, category_service, make_category):
        """Test the listing returns categories in id order."""
        await make_category(name="A")
        await make_category(name="B")

        categories = await category_service.list_all()

        assert [c.name for c in categories] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_products_count(self, category_service, make_category, make_product):
        """Test the product count is derived from current products."""
        category = await make_category()
        await make_product(category.id)
        await make_product(category.id)

        assert (await category_service.get_by_id(category.id)).products_count == 2


class TestCategoryWrites:
    """Test writes and the tags they flush."""

    @pytest.mark.asyncio
    async def test_create_accepts_schema(self, category_service):
        """Test create takes a validated input model."""
        created = await category_service.create(
            CategoryCreate(name="Games", description=None)
        )

        assert created.id > 0
        assert created.is_active is True
        assert created.products_count == 0

    @pytest.mark.asyncio
    async def test_create_invalidates_listing(self, category_service, make_category):
        """Test a cached listing includes a category created afterwards."""
        await make_category(name="A")
        assert len(await category_service.list_all()) == 1

        await make_category(name="B")

        assert [c.name for c in await category_service.list_all()] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_update_invalidates_entity_and_listing(
        self, category_service, make_category
    ):
        """Test both the single entry and the listing see an update."""
        category = await make_category(name="Old")
        await category_service.get_by_id(category.id)
        await category_service.list_all()

        updated = await category_service.update(category.id, CategoryUpdate(name="New"))

        assert updated.name == "New"
        assert (await category_service.get_by_id(category.id)).name == "New"
        assert (await category_service.list_all())[0].name == "New"

    @pytest.mark.asyncio
    async def test_update_keeps_unsupplied_fields(self, category_service, make_category):
        """Test a partial update leaves other fields alone."""
        category = await make_category(name="Toys", description="For kids")

        updated = await category_service.update(category.id, {"is_active": False})

        assert updated.name == "Toys"
        assert updated.description == "For kids"
        assert updated.is_active is False

    @pytest.mark.asyncio
    async def test_update_can_clear_description(self, category_service, make_category):
        """Test an explicit null clears the nullable description."""
        category = await make_category(name="Toys", description="For kids")
        await category_service.get_by_id(category.id)

        updated = await category_service.update(category.id, {"description": None})

        assert updated.description is None
        assert (await category_service.get_by_id(category.id)).description is None

    @pytest.mark.asyncio
    async def test_update_ignores_null_for_required_fields(
        self, category_service, make_category
    ):
        """Test an explicit null on a required field leaves it unchanged."""
        category = await make_category(name="Toys")

        updated = await category_service.update(category.id, {"name": None})

        assert updated.name == "Toys"

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, category_service):
        """Test updating an unknown category flushes nothing."""
        with patch.object(category_service.cache, "flush", AsyncMock()) as flush:
            assert await category_service.update(404, {"name": "X"}) is None
            flush.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete(self, category_service, make_category):
        """Test delete removes the category from reads."""
        category = await make_category()
        await category_service.get_by_id(category.id)
        await category_service.list_all()

        assert await category_service.delete(category.id) is True

        assert await category_service.get_by_id(category.id) is None
        assert await category_service.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_missing_returns_false(self, category_service):
        """Test deleting an unknown category reports false."""
        assert await category_service.delete(404) is False

    @pytest.mark.asyncio
    async def test_delete_cascades_to_cached_products_and_orders(
        self,
        category_service,
        product_service,
        order_service,
        make_category,
        make_product,
        order_payload,
    ):
        """Test cached products and orders of a deleted category are not served."""
        category = await make_category()
        product = await make_product(category.id)
        order = await order_service.create(order_payload(product.id))

        assert await product_service.get_by_id(product.id) is not None
        assert await order_service.get_by_id(order.id) is not None
        assert len(await product_service.list_all()) == 1
        assert len(await order_service.list_all()) == 1

        await category_service.delete(category.id)

        assert await product_service.get_by_id(product.id) is None
        assert await order_service.get_by_id(order.id) is None
        assert await product_service.list_all() == []
        assert await order_service.list_all() == []

    @pytest.mark.asyncio
    async def test_rename_refreshes_cached_product_category_name(
        self, category_service, product_service, make_category, make_product
    ):
        """Test products embedding the category name see a rename."""
        category = await make_category(name="Old name")
        product = await make_product(category.id)
        assert (await product_service.get_by_id(product.id)).category_name == "Old name"

        await category_service.update(category.id, {"name": "New name"})

        assert (await product_service.get_by_id(product.id)).category_name == "New name"
