from datetime import date
from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.models.purchase import PurchaseOrderStatus
from app.schemas.base import MessageResponse
from app.schemas.purchase import (
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
    PurchaseOrderResponse,
    PurchaseOrderListResponse,
    PurchaseOrderConvertRequest,
    PurchaseOrderConvertResult,
    PurchaseResponse,
)
from app.services.purchase_service import PurchaseService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Purchase Orders"])


@router.get("", response_model=PurchaseOrderListResponse)
async def list_purchase_orders(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[PurchaseOrderStatus] = Query(None),
    vendor_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
):
    """
    Get paginated list of purchase orders.
    """
    service = PurchaseService(db, current_user.id)
    skip = (page - 1) * size

    orders, total = await service.get_purchase_orders(
        status=status.value if status else None,
        vendor_id=vendor_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        skip=skip,
        limit=size,
    )

    return PurchaseOrderListResponse(
        items=[PurchaseOrderResponse.model_validate(po) for po in orders],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/formatted")
async def list_formatted_purchase_orders(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[PurchaseOrderStatus] = Query(None),
    vendor_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None),
):
    service = PurchaseService(db, current_user.id)
    orders, total = await service.get_purchase_orders(
        status=status.value if status else None,
        vendor_id=vendor_id,
        search=search,
        skip=(page - 1) * size,
        limit=size,
    )
    return {
        "items": await service.format_purchase_orders(orders),
        "total": total,
        "page": page,
        "size": size,
        "pages": ceil(total / size) if total > 0 else 1,
    }


@router.get("/{po_id}", response_model=PurchaseOrderResponse)
async def get_purchase_order(
    po_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get purchase order by ID."""
    po = await PurchaseService(db, current_user.id).get_purchase_order(po_id)
    return PurchaseOrderResponse.model_validate(po)


@router.get("/{po_id}/formatted")
async def get_formatted_purchase_order(
    po_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Display projection of a purchase order with vendor, bank and signature blocks."""
    return await PurchaseService(db, current_user.id).get_formatted_purchase_order(po_id)


@router.post("", response_model=PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_purchase_order(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: PurchaseOrderCreate = Depends(form_payload(PurchaseOrderCreate)),
    signature_image: Optional[UploadFile] = File(None),
):
    """
    Create a purchase order in status NEW.

    ``vendor_id`` must be a supplier user (400 otherwise).
    """
    image_path = await tracker.save_image(signature_image, UploadCategory.DOCUMENT_SIGNATURES)
    po, stale = await PurchaseService(db, current_user.id).create_purchase_order(data, image_path)
    tracker.supersede(*stale)
    return PurchaseOrderResponse.model_validate(po)


@router.put("/{po_id}", response_model=PurchaseOrderResponse)
async def update_purchase_order(
    po_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: PurchaseOrderUpdate = Depends(form_payload(PurchaseOrderUpdate)),
    signature_image: Optional[UploadFile] = File(None),
):
    """Update a purchase order that has not been converted."""
    image_path = await tracker.save_image(signature_image, UploadCategory.DOCUMENT_SIGNATURES)
    po, stale = await PurchaseService(db, current_user.id).update_purchase_order(po_id, data, image_path)
    tracker.supersede(*stale)
    return PurchaseOrderResponse.model_validate(po)


@router.delete("/{po_id}", response_model=MessageResponse)
async def delete_purchase_order(
    po_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    await PurchaseService(db, current_user.id).delete_purchase_order(po_id)
    return MessageResponse(message="Purchase order deleted successfully")


@router.post(
    "/{po_id}/convert",
    response_model=PurchaseOrderConvertResult,
    status_code=status.HTTP_201_CREATED,
)
async def convert_purchase_order(
    po_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
    data: Optional[PurchaseOrderConvertRequest] = None,
):
    """
    Convert a purchase order into a purchase.

    The purchase stocks its items in; the order becomes CONVERTED with
    convert_type purchase. Both happen in one transaction.
    """
    po, purchase = await PurchaseService(db, current_user.id).convert_purchase_order(po_id, data)
    return PurchaseOrderConvertResult(
        purchase_order=PurchaseOrderResponse.model_validate(po),
        purchase=PurchaseResponse.model_validate(purchase),
    )
