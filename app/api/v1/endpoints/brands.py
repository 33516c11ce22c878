from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.schemas.base import MessageResponse
from app.schemas.brand import (
    BrandCreate,
    BrandUpdate,
    BrandResponse,
    BrandListResponse,
)
from app.services.product_service import ProductService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Brands"])


@router.get("", response_model=BrandListResponse)
async def list_brands(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """
    Get paginated list of brands.
    """
    service = ProductService(db)
    skip = (page - 1) * size

    brands, total = await service.get_brands(search=search, skip=skip, limit=size)

    return BrandListResponse(
        items=[BrandResponse.model_validate(b) for b in brands],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{brand_id}", response_model=BrandResponse)
async def get_brand(
    brand_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get a brand by ID."""
    brand = await ProductService(db).get_brand(brand_id)
    return BrandResponse.model_validate(brand)


@router.post("", response_model=BrandResponse, status_code=status.HTTP_201_CREATED)
async def create_brand(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: BrandCreate = Depends(form_payload(BrandCreate)),
    image: Optional[UploadFile] = File(None),
):
    """
    Create a new brand.
    Brand names are unique (409 otherwise).
    """
    image_path = await tracker.save_image(image, UploadCategory.BRANDS)
    brand = await ProductService(db).create_brand(data, image_path, current_user.id)
    return BrandResponse.model_validate(brand)


@router.put("/{brand_id}", response_model=BrandResponse)
async def update_brand(
    brand_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: BrandUpdate = Depends(form_payload(BrandUpdate)),
    image: Optional[UploadFile] = File(None),
):
    """Update a brand."""
    image_path = await tracker.save_image(image, UploadCategory.BRANDS)
    brand, replaced = await ProductService(db).update_brand(brand_id, data, image_path)
    tracker.supersede(replaced)
    return BrandResponse.model_validate(brand)


@router.delete("/{brand_id}", response_model=MessageResponse)
async def delete_brand(
    brand_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
):
    """Delete a brand that no product uses."""
    image = await ProductService(db).delete_brand(brand_id)
    tracker.supersede(image)
    return MessageResponse(message="Brand deleted successfully")
