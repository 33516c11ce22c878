from datetime import date
from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.models.quotation import QuotationStatus
from app.schemas.base import MessageResponse
from app.schemas.invoice import InvoiceResponse
from app.schemas.quotation import (
    QuotationCreate,
    QuotationUpdate,
    QuotationResponse,
    QuotationListResponse,
    QuotationConvertRequest,
    QuotationConvertResult,
)
from app.services.quotation_service import QuotationService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Quotations"])


@router.get("", response_model=QuotationListResponse)
async def list_quotations(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[QuotationStatus] = Query(None),
    customer_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, description="Quotation number, reference or item name"),
):
    """
    Get paginated list of quotations.
    """
    service = QuotationService(db, current_user.id)
    skip = (page - 1) * size

    quotations, total = await service.get_quotations(
        status=status.value if status else None,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        skip=skip,
        limit=size,
    )

    return QuotationListResponse(
        items=[QuotationResponse.model_validate(q) for q in quotations],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/formatted")
async def list_formatted_quotations(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[QuotationStatus] = Query(None),
    customer_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None),
):
    service = QuotationService(db, current_user.id)
    quotations, total = await service.get_quotations(
        status=status.value if status else None,
        customer_id=customer_id,
        search=search,
        skip=(page - 1) * size,
        limit=size,
    )
    return {
        "items": await service.format_quotations(quotations),
        "total": total,
        "page": page,
        "size": size,
        "pages": ceil(total / size) if total > 0 else 1,
    }


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(
    quotation_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    quotation = await QuotationService(db, current_user.id).get_quotation(quotation_id)
    return QuotationResponse.model_validate(quotation)


@router.get("/{quotation_id}/formatted")
async def get_formatted_quotation(
    quotation_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Display projection: dates as "DD, Mon YYYY", customer, bank and signature resolved."""
    return await QuotationService(db, current_user.id).get_formatted_quotation(quotation_id)


@router.post("", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def create_quotation(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: QuotationCreate = Depends(form_payload(QuotationCreate)),
    signature_image: Optional[UploadFile] = File(None),
):
    """
    Create a quotation.

    ``sub_total``, ``total_discount``, ``total_tax`` and ``grand_total``
    override the computed values one by one when sent.
    """
    image_path = await tracker.save_image(signature_image, UploadCategory.DOCUMENT_SIGNATURES)
    quotation, stale = await QuotationService(db, current_user.id).create_quotation(data, image_path)
    tracker.supersede(*stale)
    return QuotationResponse.model_validate(quotation)


@router.put("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(
    quotation_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: QuotationUpdate = Depends(form_payload(QuotationUpdate)),
    signature_image: Optional[UploadFile] = File(None),
):
    image_path = await tracker.save_image(signature_image, UploadCategory.DOCUMENT_SIGNATURES)
    quotation, stale = await QuotationService(db, current_user.id).update_quotation(
        quotation_id, data, image_path
    )
    tracker.supersede(*stale)
    return QuotationResponse.model_validate(quotation)


@router.delete("/{quotation_id}", response_model=MessageResponse)
async def delete_quotation(
    quotation_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Soft delete a quotation."""
    await QuotationService(db, current_user.id).delete_quotation(quotation_id)
    return MessageResponse(message="Quotation deleted successfully")


@router.post(
    "/{quotation_id}/convert-to-invoice",
    response_model=QuotationConvertResult,
    status_code=status.HTTP_201_CREATED,
)
async def convert_quotation_to_invoice(
    quotation_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
    data: Optional[QuotationConvertRequest] = None,
):
    """
    Convert a quotation into a DRAFT invoice.

    The invoice copies the quotation's items, totals, bank and signature;
    the quotation is marked converted in the same transaction.
    """
    quotation, invoice = await QuotationService(db, current_user.id).convert_to_invoice(quotation_id, data)
    return QuotationConvertResult(
        quotation=QuotationResponse.model_validate(quotation),
        invoice=InvoiceResponse.model_validate(invoice),
    )
