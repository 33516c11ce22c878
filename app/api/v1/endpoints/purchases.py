from datetime import date
from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.models.purchase import PurchaseStatus
from app.schemas.base import MessageResponse
from app.schemas.purchase import (
    PurchaseCreate,
    PurchaseUpdate,
    PurchaseResponse,
    PurchaseListResponse,
)
from app.services.purchase_service import PurchaseService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Purchases"])


@router.get("", response_model=PurchaseListResponse)
async def list_purchases(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[PurchaseStatus] = Query(None),
    vendor_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
):
    """Get paginated list of purchases."""
    service = PurchaseService(db, current_user.id)
    skip = (page - 1) * size

    purchases, total = await service.get_purchases(
        status=status.value if status else None,
        vendor_id=vendor_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        skip=skip,
        limit=size,
    )

    return PurchaseListResponse(
        items=[PurchaseResponse.model_validate(p) for p in purchases],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/formatted")
async def list_formatted_purchases(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[PurchaseStatus] = Query(None),
    vendor_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None),
):
    """Display projections of a page of purchases, vendor and bank blocks resolved."""
    service = PurchaseService(db, current_user.id)
    purchases, total = await service.get_purchases(
        status=status.value if status else None,
        vendor_id=vendor_id,
        search=search,
        skip=(page - 1) * size,
        limit=size,
    )
    return {
        "items": await service.format_purchases(purchases),
        "total": total,
        "page": page,
        "size": size,
        "pages": ceil(total / size) if total > 0 else 1,
    }


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(
    purchase_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    purchase = await PurchaseService(db, current_user.id).get_purchase(purchase_id)
    return PurchaseResponse.model_validate(purchase)


@router.get("/{purchase_id}/formatted")
async def get_formatted_purchase(
    purchase_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    return await PurchaseService(db, current_user.id).get_formatted_purchase(purchase_id)


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
async def create_purchase(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: PurchaseCreate = Depends(form_payload(PurchaseCreate)),
    signature_image: Optional[UploadFile] = File(None),
):
    """
    Record a purchase.

    Every line with a product is stocked in within the same transaction.
    A manualSignature needs ``signature_image``.
    """
    image_path = await tracker.save_image(signature_image, UploadCategory.DOCUMENT_SIGNATURES)
    purchase, stale = await PurchaseService(db, current_user.id).create_purchase(data, image_path)
    tracker.supersede(*stale)
    return PurchaseResponse.model_validate(purchase)


@router.put("/{purchase_id}", response_model=PurchaseResponse)
async def update_purchase(
    purchase_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: PurchaseUpdate = Depends(form_payload(PurchaseUpdate)),
    signature_image: Optional[UploadFile] = File(None),
):
    """
    Update a purchase.

    Changed items are re-applied to inventory as adjustments.
    """
    image_path = await tracker.save_image(signature_image, UploadCategory.DOCUMENT_SIGNATURES)
    purchase, stale = await PurchaseService(db, current_user.id).update_purchase(purchase_id, data, image_path)
    tracker.supersede(*stale)
    return PurchaseResponse.model_validate(purchase)


@router.delete("/{purchase_id}", response_model=MessageResponse)
async def delete_purchase(
    purchase_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Soft delete a purchase. Stock already received stays in inventory."""
    await PurchaseService(db, current_user.id).delete_purchase(purchase_id)
    return MessageResponse(message="Purchase deleted successfully")
