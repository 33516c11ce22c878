from datetime import date
from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.schemas.payment import (
    SupplierPaymentCreate,
    SupplierPaymentUpdate,
    SupplierPaymentResponse,
    SupplierPaymentResult,
    SupplierPaymentListResponse,
)
from app.services.supplier_payment_service import SupplierPaymentService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Supplier Payments"])


@router.get("", response_model=SupplierPaymentListResponse)
async def list_supplier_payments(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    supplier_id: Optional[uuid.UUID] = Query(None),
    purchase_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, description="Payment number, reference or notes"),
):
    """
    Get paginated list of supplier payments.
    """
    service = SupplierPaymentService(db, current_user.id)
    skip = (page - 1) * size

    payments, total = await service.get_payments(
        supplier_id=supplier_id,
        purchase_id=purchase_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        skip=skip,
        limit=size,
    )

    return SupplierPaymentListResponse(
        items=[SupplierPaymentResponse.model_validate(p) for p in payments],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{payment_id}", response_model=SupplierPaymentResponse)
async def get_supplier_payment(
    payment_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    payment = await SupplierPaymentService(db, current_user.id).get_payment(payment_id)
    return SupplierPaymentResponse.model_validate(payment)


@router.post("", response_model=SupplierPaymentResult, status_code=status.HTTP_201_CREATED)
async def create_supplier_payment(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: SupplierPaymentCreate = Depends(form_payload(SupplierPaymentCreate)),
    attachment: Optional[UploadFile] = File(None),
):
    """
    Pay a supplier against a purchase.

    The amount may not exceed the purchase balance. The purchase becomes
    paid when the balance reaches zero, partially_paid otherwise.
    """
    attachment_path = await tracker.save_attachment(attachment, UploadCategory.PAYMENTS)
    payment, purchase = await SupplierPaymentService(db, current_user.id).create_payment(
        data, attachment_path
    )
    return SupplierPaymentResult(
        payment=SupplierPaymentResponse.model_validate(payment),
        purchase_status=purchase.status,
        purchase_paid_amount=purchase.paid_amount,
        purchase_balance_amount=purchase.balance_amount,
    )


@router.put("/{payment_id}", response_model=SupplierPaymentResponse)
async def update_supplier_payment(
    payment_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: SupplierPaymentUpdate = Depends(form_payload(SupplierPaymentUpdate)),
    attachment: Optional[UploadFile] = File(None),
):
    """Update reference, date, mode, notes or the attachment."""
    attachment_path = await tracker.save_attachment(attachment, UploadCategory.PAYMENTS)
    payment, replaced = await SupplierPaymentService(db, current_user.id).update_payment(
        payment_id, data, attachment_path
    )
    tracker.supersede(replaced)
    return SupplierPaymentResponse.model_validate(payment)


@router.delete("/{payment_id}", response_model=SupplierPaymentResult)
async def delete_supplier_payment(
    payment_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """
    Soft delete a payment.

    The amount is taken back off the purchase and its status recomputed.
    """
    payment, purchase = await SupplierPaymentService(db, current_user.id).delete_payment(payment_id)
    return SupplierPaymentResult(
        payment=SupplierPaymentResponse.model_validate(payment),
        purchase_status=purchase.status,
        purchase_paid_amount=purchase.paid_amount,
        purchase_balance_amount=purchase.balance_amount,
    )
