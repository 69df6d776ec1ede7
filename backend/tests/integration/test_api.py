"""
Integration tests for the Storefront HTTP API.

The application runs in-process through httpx's ASGI transport with its
lifespan entered explicitly, backed by a SQLite file and the in-memory
cache store.
"""

from decimal import Decimal
from unittest.mock import patch

import httpx
import pytest

from storefront.main import create_app


@pytest.fixture
async def client(settings):
    """HTTP client bound to a freshly started application."""
    app = create_app(settings)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


async def create_catalogue(client, stock=20):
    category = (await client.post("/api/categories", json={"name": "Gadgets"})).json()
    response = await client.post(
        "/api/products",
        json={
            "name": "Widget",
            "sku": "WID-001",
            "price": "100.00",
            "quantity": stock,
            "category_id": category["id"],
        },
    )
    assert response.status_code == 201
    return category, response.json()


class TestHealth:
    """Test health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Test basic liveness."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_ready(self, client):
        """Test readiness checks the database and cache."""
        response = await client.get("/health/ready")

        body = response.json()
        assert response.status_code == 200
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["cache"]["backend"] == "memory"

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        """Test Prometheus exposition includes the cache counters."""
        await client.get("/api/categories")

        response = await client.get("/health/metrics")

        assert response.status_code == 200
        assert "storefront_cache_misses_total" in response.text

    @pytest.mark.asyncio
    async def test_app_defaults_to_process_settings(self, settings):
        """Test create_app without arguments reads the process settings."""
        with patch("storefront.main.get_settings", return_value=settings) as loader:
            app = create_app()

        loader.assert_called_once_with()
        async with app.router.lifespan_context(app):
            assert app.state.settings is settings


class TestCategoriesApi:
    """Test category endpoints."""

    @pytest.mark.asyncio
    async def test_crud(self, client):
        """Test store, show, update, index and destroy."""
        created = await client.post("/api/categories", json={"name": "Books"})
        assert created.status_code == 201
        category_id = created.json()["id"]

        shown = await client.get(f"/api/categories/{category_id}")
        assert shown.json()["products_count"] == 0

        updated = await client.put(f"/api/categories/{category_id}", json={"name": "Novels"})
        assert updated.status_code == 200
        assert updated.json()["name"] == "Novels"

        listing = await client.get("/api/categories")
        assert [c["name"] for c in listing.json()] == ["Novels"]

        deleted = await client.delete(f"/api/categories/{category_id}")
        assert deleted.status_code == 204
        assert deleted.content == b""

        assert (await client.get(f"/api/categories/{category_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_not_found(self, client):
        """Test unknown ids are 404 on show, update and destroy."""
        assert (await client.get("/api/categories/42")).status_code == 404
        assert (await client.put("/api/categories/42", json={"name": "X"})).status_code == 404
        assert (await client.delete("/api/categories/42")).status_code == 404

    @pytest.mark.asyncio
    async def test_validation(self, client):
        """Test invalid input is rejected before reaching the service."""
        response = await client.post("/api/categories", json={"name": ""})

        assert response.status_code == 422


class TestProductsApi:
    """Test product endpoints."""

    @pytest.mark.asyncio
    async def test_unknown_category_is_bad_request(self, client):
        """Test a missing category surfaces as a client error."""
        response = await client.post(
            "/api/products",
            json={"name": "X", "sku": "X-1", "price": "1.00", "quantity": 1, "category_id": 99},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "REFERENCED_ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_duplicate_sku_is_bad_request(self, client):
        """Test a unique constraint violation is a client error."""
        category, product = await create_catalogue(client)

        response = await client.post(
            "/api/products",
            json={
                "name": "Copy",
                "sku": product["sku"],
                "price": "5.00",
                "quantity": 1,
                "category_id": category["id"],
            },
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_move_product_updates_category_counts(self, client):
        """Test cached category counts follow a product move."""
        category_a, product = await create_catalogue(client)
        category_b = (await client.post("/api/categories", json={"name": "Other"})).json()
        assert (await client.get(f"/api/categories/{category_a['id']}")).json()["products_count"] == 1

        response = await client.put(
            f"/api/products/{product['id']}", json={"category_id": category_b["id"]}
        )

        assert response.json()["category_name"] == "Other"
        assert (await client.get(f"/api/categories/{category_a['id']}")).json()["products_count"] == 0
        assert (await client.get(f"/api/categories/{category_b['id']}")).json()["products_count"] == 1


class TestOrdersApi:
    """Test order endpoints."""

    @pytest.mark.asyncio
    async def test_order_lifecycle(self, client):
        """Test price capture, restricted update and delete without restock."""
        _, product = await create_catalogue(client)

        created = await client.post(
            "/api/orders",
            json={
                "product_id": product["id"],
                "customer_name": "Ada Lovelace",
                "customer_email": "ada@example.com",
                "quantity": 2,
            },
        )
        assert created.status_code == 201
        order = created.json()
        assert Decimal(order["unit_price"]) == Decimal("100.00")
        assert Decimal(order["total_price"]) == Decimal("200.00")
        assert (await client.get(f"/api/products/{product['id']}")).json()["quantity"] == 18

        updated = await client.put(
            f"/api/orders/{order['id']}",
            json={"status": "completed", "quantity": 10, "total_price": "1.00"},
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "completed"
        assert updated.json()["quantity"] == 2
        assert Decimal(updated.json()["total_price"]) == Decimal("200.00")

        assert (await client.delete(f"/api/orders/{order['id']}")).status_code == 204
        assert (await client.get(f"/api/orders/{order['id']}")).status_code == 404
        assert (await client.get(f"/api/products/{product['id']}")).json()["quantity"] == 18

    @pytest.mark.asyncio
    async def test_insufficient_stock_is_bad_request(self, client):
        """Test an order larger than the stock is rejected and nothing changes."""
        _, product = await create_catalogue(client, stock=1)

        response = await client.post(
            "/api/orders",
            json={
                "product_id": product["id"],
                "customer_name": "Ada Lovelace",
                "customer_email": "ada@example.com",
                "quantity": 2,
            },
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INSUFFICIENT_STOCK"
        assert (await client.get("/api/orders")).json() == []
        assert (await client.get(f"/api/products/{product['id']}")).json()["quantity"] == 1

    @pytest.mark.asyncio
    async def test_unknown_product_is_bad_request(self, client):
        """Test an order for a missing product is a client error."""
        response = await client.post(
            "/api/orders",
            json={
                "product_id": 404,
                "customer_name": "Ada Lovelace",
                "customer_email": "ada@example.com",
                "quantity": 1,
            },
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_order_not_found(self, client):
        """Test unknown orders are 404."""
        assert (await client.get("/api/orders/7")).status_code == 404
        assert (await client.put("/api/orders/7", json={"status": "x"})).status_code == 404
        assert (await client.delete("/api/orders/7")).status_code == 404
