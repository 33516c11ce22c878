from typing import List, Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.schemas.base import MessageResponse
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
)
from app.services.product_service import ProductService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    category_id: Optional[uuid.UUID] = Query(None),
    brand_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None, description="Search by name, code or barcode"),
):
    """
    Get paginated list of products.
    Filter by category or brand; search matches name, code and barcode.
    """
    service = ProductService(db)
    skip = (page - 1) * size

    products, total = await service.get_products(
        search=search,
        category_id=category_id,
        brand_id=brand_id,
        skip=skip,
        limit=size,
    )

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/recent", response_model=List[ProductResponse])
async def recent_products(db: DB, current_user: CurrentUser):
    """The five most recently created products."""
    products = await ProductService(db).get_recent_products(limit=5)
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get a product by ID."""
    product = await ProductService(db).get_product(product_id)
    return ProductResponse.model_validate(product)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: ProductCreate = Depends(form_payload(ProductCreate)),
    product_image: Optional[UploadFile] = File(None),
):
    """
    Create a new product.

    Category, brand, unit and tax ids must exist (422). Codes are unique (409).
    """
    image_path = await tracker.save_image(product_image, UploadCategory.PRODUCTS)
    product = await ProductService(db).create_product(data, image_path, current_user.id)
    return ProductResponse.model_validate(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: ProductUpdate = Depends(form_payload(ProductUpdate)),
    product_image: Optional[UploadFile] = File(None),
):
    """Update a product."""
    image_path = await tracker.save_image(product_image, UploadCategory.PRODUCTS)
    product, replaced = await ProductService(db).update_product(product_id, data, image_path)
    tracker.supersede(replaced)
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
):
    image = await ProductService(db).delete_product(product_id)
    tracker.supersede(image)
    return MessageResponse(message="Product deleted successfully")
