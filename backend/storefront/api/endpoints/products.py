"""
Products API endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Response

from ...schemas import ProductCreate, ProductRead, ProductUpdate
from ...services import ProductService
from ..dependencies import get_product_service

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductRead])
async def list_products(service: ProductService = Depends(get_product_service)):
    return await service.list_all()


@router.post("", response_model=ProductRead, status_code=201)
async def create_product(
    product_data: ProductCreate,
    service: ProductService = Depends(get_product_service),
):
    """
    Create a product.

    Returns 400 when the category does not exist.
    """
    return await service.create(product_data)


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: int = Path(..., gt=0),
    service: ProductService = Depends(get_product_service),
):
    product = await service.get_by_id(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    update_data: ProductUpdate,
    product_id: int = Path(..., gt=0),
    service: ProductService = Depends(get_product_service),
):
    product = await service.update(product_id, update_data)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: int = Path(..., gt=0),
    service: ProductService = Depends(get_product_service),
):
    if not await service.delete(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return Response(status_code=204)
