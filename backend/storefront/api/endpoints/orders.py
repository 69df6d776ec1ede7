"""
Orders API endpoints

Order creation runs the price-capturing, stock-taking transaction.
Business errors (unknown product, insufficient stock) surface as 400
through the application's StorefrontError handler.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Response

from ...schemas import OrderCreate, OrderRead, OrderUpdate
from ...services import OrderService
from ..dependencies import get_order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("", response_model=List[OrderRead])
async def list_orders(service: OrderService = Depends(get_order_service)):
    return await service.list_all()


@router.post("", response_model=OrderRead, status_code=201)
async def create_order(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service),
):
    """
    Place an order.

    Args:
        order_data: Product, customer and quantity; prices are ignored

    Returns:
        Created order with the captured unit and total price
    """
    return await service.create(order_data)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int = Path(..., gt=0),
    service: OrderService = Depends(get_order_service),
):
    order = await service.get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.put("/{order_id}", response_model=OrderRead)
async def update_order(
    update_data: OrderUpdate,
    order_id: int = Path(..., gt=0),
    service: OrderService = Depends(get_order_service),
):
    """Update customer details or status; other fields are ignored."""
    order = await service.update(order_id, update_data)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: int = Path(..., gt=0),
    service: OrderService = Depends(get_order_service),
):
    """Delete an order. The product's stock is not restored."""
    if not await service.delete(order_id):
        raise HTTPException(status_code=404, detail="Order not found")
    return Response(status_code=204)
