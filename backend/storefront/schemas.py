"""
Storefront Schemas

Pydantic input and read models for categories, products and orders.
Read models are what services return and what the cache stores (as their
JSON-mode dumps).
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_ORDER_STATUS
from .models import Category, Order, Product


class ReadModel(BaseModel):
    """Base for read models; round-trips through the cache as JSON."""

    model_config = ConfigDict(from_attributes=True)

    def to_cache(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


# Categories


class CategoryCreate(BaseModel):
    """Schema for creating categories."""

    name: str = Field(..., min_length=1, max_length=255, description="Category name")
    description: Optional[str] = Field(None, description="Category description")
    is_active: bool = Field(True, description="Whether the category is listed")


class CategoryUpdate(BaseModel):
    """Schema for updating categories."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryRead(ReadModel):
    """Schema for reading categories."""

    id: int
    name: str
    description: Optional[str]
    is_active: bool
    products_count: int = 0

    @classmethod
    def from_model(cls, category: Category) -> "CategoryRead":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            is_active=category.is_active,
            products_count=category.products_count or 0,
        )


# Products


class ProductCreate(BaseModel):
    """Schema for creating products."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    sku: str = Field(..., min_length=1, max_length=64)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(0, ge=0, description="Units in stock")
    category_id: int = Field(..., gt=0)
    is_active: bool = True


class ProductUpdate(BaseModel):
    """Schema for updating products."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class ProductRead(ReadModel):
    """Schema for reading products."""

    id: int
    name: str
    description: Optional[str]
    sku: str
    price: Decimal
    quantity: int
    category_id: int
    category_name: Optional[str] = None
    is_active: bool

    @classmethod
    def from_model(cls, product: Product) -> "ProductRead":
        """Build from a product; `category` must be loaded."""
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            sku=product.sku,
            price=product.price,
            quantity=product.quantity,
            category_id=product.category_id,
            category_name=product.category.name if product.category else None,
            is_active=product.is_active,
        )


# Orders


class OrderCreate(BaseModel):
    """
    Schema for creating orders.

    Prices are never taken from the caller: unit_price is captured from the
    product inside the order transaction.
    """

    model_config = ConfigDict(extra="ignore")

    product_id: int = Field(..., gt=0)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: str = Field(..., min_length=3, max_length=255)
    quantity: int = Field(..., gt=0)
    status: str = Field(DEFAULT_ORDER_STATUS, min_length=1, max_length=50)
    order_date: Optional[datetime] = None


class OrderUpdate(BaseModel):
    """
    Schema for updating orders.

    Only customer details and status are mutable; quantity, prices and
    product are dropped silently if supplied.
    """

    model_config = ConfigDict(extra="ignore")

    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_email: Optional[str] = Field(None, min_length=3, max_length=255)
    status: Optional[str] = Field(None, min_length=1, max_length=50)


class OrderRead(ReadModel):
    """Schema for reading orders."""

    id: int
    product_id: int
    product_name: Optional[str] = None
    customer_name: str
    customer_email: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    status: str
    order_date: datetime

    @classmethod
    def from_model(cls, order: Order) -> "OrderRead":
        """Build from an order; `product` must be loaded."""
        return cls(
            id=order.id,
            product_id=order.product_id,
            product_name=order.product.name if order.product else None,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            quantity=order.quantity,
            unit_price=order.unit_price,
            total_price=order.total_price,
            status=order.status,
            order_date=order.order_date,
        )
