from datetime import date
from typing import List, Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.models.invoice import InvoiceStatus
from app.schemas.base import MessageResponse
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceResponse,
    InvoiceListResponse,
    InvoicePaymentCreate,
    InvoicePaymentResponse,
    InvoicePaymentResult,
)
from app.services.invoice_service import InvoiceService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Invoices"])


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[InvoiceStatus] = Query(None),
    customer_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, description="Invoice number, reference or customer name"),
):
    """
    Get paginated list of invoices.

    Sorted by invoice date, newest first.
    """
    service = InvoiceService(db, current_user.id)
    skip = (page - 1) * size

    invoices, total = await service.get_invoices(
        status=status.value if status else None,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        skip=skip,
        limit=size,
    )

    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(i) for i in invoices],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/formatted")
async def list_formatted_invoices(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[InvoiceStatus] = Query(None),
    customer_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None),
):
    """Display projections of a page of invoices."""
    service = InvoiceService(db, current_user.id)
    invoices, total = await service.get_invoices(
        status=status.value if status else None,
        customer_id=customer_id,
        search=search,
        skip=(page - 1) * size,
        limit=size,
    )
    return {
        "items": await service.format_invoices(invoices),
        "total": total,
        "page": page,
        "size": size,
        "pages": ceil(total / size) if total > 0 else 1,
    }


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get an invoice by ID. Deleted invoices are still readable."""
    invoice = await InvoiceService(db, current_user.id).get_invoice(invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id}/formatted")
async def get_formatted_invoice(
    invoice_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """
    Display projection of an invoice.

    Dates as "DD, Mon YYYY", absolute image URLs, and customer, bank and
    signature blocks resolved.
    """
    return await InvoiceService(db, current_user.id).get_formatted_invoice(invoice_id)


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: InvoiceCreate = Depends(form_payload(InvoiceCreate)),
    signature_image: Optional[UploadFile] = File(None),
):
    """
    Create a DRAFT invoice.

    Multipart: ``data`` carries the JSON invoice, ``signature_image`` the
    eSignature picture when ``sign_type`` is eSignature. Totals left out
    of ``data`` are computed from the items.
    """
    image_path = await tracker.save_image(signature_image, UploadCategory.DOCUMENT_SIGNATURES)
    invoice, stale = await InvoiceService(db, current_user.id).create_invoice(data, image_path)
    tracker.supersede(*stale)
    return InvoiceResponse.model_validate(invoice)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: InvoiceUpdate = Depends(form_payload(InvoiceUpdate)),
    signature_image: Optional[UploadFile] = File(None),
):
    """Update an invoice; sent items replace the stored ones."""
    image_path = await tracker.save_image(signature_image, UploadCategory.DOCUMENT_SIGNATURES)
    invoice, stale = await InvoiceService(db, current_user.id).update_invoice(invoice_id, data, image_path)
    tracker.supersede(*stale)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(
    invoice_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Soft delete an invoice."""
    await InvoiceService(db, current_user.id).delete_invoice(invoice_id)
    return MessageResponse(message="Invoice deleted successfully")


# ==================== PAYMENTS ====================

@router.post(
    "/{invoice_id}/payments",
    response_model=InvoicePaymentResult,
    status_code=status.HTTP_201_CREATED,
)
async def add_invoice_payment(
    invoice_id: uuid.UUID,
    data: InvoicePaymentCreate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Record a payment received against an invoice.

    The invoice becomes PAID once fully settled, PARTIALLY_PAID before
    that. Overpayment and payments on cancelled invoices are refused.
    """
    payment, invoice = await InvoiceService(db, current_user.id).add_payment(
        invoice_id, data, received_by=current_user.id
    )
    return InvoicePaymentResult(
        payment=InvoicePaymentResponse.model_validate(payment),
        invoice_status=invoice.status,
        paid_amount=invoice.paid_amount,
        balance_amount=invoice.balance_amount,
    )


@router.get("/{invoice_id}/payments", response_model=List[InvoicePaymentResponse])
async def list_invoice_payments(
    invoice_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    payments = await InvoiceService(db, current_user.id).get_payments(invoice_id)
    return [InvoicePaymentResponse.model_validate(p) for p in payments]
