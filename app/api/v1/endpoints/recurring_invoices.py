from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query

from app.api.deps import DB, CurrentUser
from app.models.invoice import InvoiceStatus
from app.schemas.invoice import (
    FormattedInvoiceListResponse,
    InvoiceListResponse,
    InvoiceResponse,
    RecurringInvoiceCreate,
    RecurringInvoiceResult,
)
from app.services.invoice_service import InvoiceService

router = APIRouter(tags=["Recurring Invoices"])


@router.get("", response_model=FormattedInvoiceListResponse)
async def list_recurring_invoices(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[InvoiceStatus] = Query(None),
    search: Optional[str] = Query(None),
):
    """
    Get paginated list of recurring parent invoices.

    Items are display projections with formatted dates and the number of
    invoices generated from each parent so far.
    """
    service = InvoiceService(db, current_user.id)
    skip = (page - 1) * size

    invoices, total = await service.get_invoices(
        status=status.value if status else None,
        search=search,
        skip=skip,
        limit=size,
        recurring_only=True,
    )
    formatted = await service.format_invoices(invoices)
    counts = await service.count_children([i.id for i in invoices])
    for invoice, item in zip(invoices, formatted):
        item["children_count"] = counts.get(invoice.id, 0)

    return FormattedInvoiceListResponse(
        items=formatted,
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.post("", response_model=RecurringInvoiceResult)
async def roll_recurring_invoice(
    data: RecurringInvoiceCreate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Generate today's invoice from a recurring parent now.

    Uses the same rollover as the daily job, so calling it twice on one
    day creates a single invoice; the second call reports why it skipped.
    """
    result = await InvoiceService(db, current_user.id).roll_now(data.parent_invoice_id)
    invoice = result["invoice"]
    return RecurringInvoiceResult(
        created=result["created"],
        reason=result["reason"],
        invoice=InvoiceResponse.model_validate(invoice) if invoice else None,
        next_recurring_date=result["next_recurring_date"],
    )


@router.get("/{parent_id}/children", response_model=InvoiceListResponse)
async def list_child_invoices(
    parent_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
):
    """Invoices generated from a recurring parent."""
    skip = (page - 1) * size
    children, total = await InvoiceService(db, current_user.id).get_children(parent_id, skip=skip, limit=size)

    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(c) for c in children],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )
