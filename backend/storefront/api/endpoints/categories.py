"""
Categories API endpoints

Index, store, show, update and destroy for categories. Reads are served
through the tagged cache by CategoryService.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Response

from ...schemas import CategoryCreate, CategoryRead, CategoryUpdate
from ...services import CategoryService
from ..dependencies import get_category_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=List[CategoryRead])
async def list_categories(service: CategoryService = Depends(get_category_service)):
    """List every category with its product count."""
    return await service.list_all()


@router.post("", response_model=CategoryRead, status_code=201)
async def create_category(
    category_data: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
):
    return await service.create(category_data)


@router.get("/{category_id}", response_model=CategoryRead)
async def get_category(
    category_id: int = Path(..., gt=0),
    service: CategoryService = Depends(get_category_service),
):
    category = await service.get_by_id(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.put("/{category_id}", response_model=CategoryRead)
async def update_category(
    update_data: CategoryUpdate,
    category_id: int = Path(..., gt=0),
    service: CategoryService = Depends(get_category_service),
):
    category = await service.update(category_id, update_data)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: int = Path(..., gt=0),
    service: CategoryService = Depends(get_category_service),
):
    """
    Delete a category.

    Its products and their orders are deleted with it.
    """
    if not await service.delete(category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    return Response(status_code=204)
