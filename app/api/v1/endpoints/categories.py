from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.schemas.base import MessageResponse
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryListResponse,
)
from app.services.product_service import ProductService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search by name or slug"),
):
    """
    Get paginated list of categories.
    """
    service = ProductService(db)
    skip = (page - 1) * size

    categories, total = await service.get_categories(search=search, skip=skip, limit=size)

    return CategoryListResponse(
        items=[CategoryResponse.model_validate(c) for c in categories],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get a category by ID."""
    category = await ProductService(db).get_category(category_id)
    return CategoryResponse.model_validate(category)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: CategoryCreate = Depends(form_payload(CategoryCreate)),
    image: Optional[UploadFile] = File(None),
):
    """
    Create a new category.

    The slug is derived from the name when omitted.
    """
    image_path = await tracker.save_image(image, UploadCategory.CATEGORIES)
    category = await ProductService(db).create_category(data, image_path, current_user.id)
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: CategoryUpdate = Depends(form_payload(CategoryUpdate)),
    image: Optional[UploadFile] = File(None),
):
    """Update a category; a new image replaces the stored one."""
    image_path = await tracker.save_image(image, UploadCategory.CATEGORIES)
    category, replaced = await ProductService(db).update_category(category_id, data, image_path)
    tracker.supersede(replaced)
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
):
    """
    Delete a category.

    Refused with 409 while products reference it.
    """
    image = await ProductService(db).delete_category(category_id)
    tracker.supersede(image)
    return MessageResponse(message="Category deleted successfully")
