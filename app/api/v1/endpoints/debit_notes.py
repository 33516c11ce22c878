from datetime import date
from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.schemas.base import MessageResponse
from app.schemas.debit_note import (
    DebitNoteCreate,
    DebitNoteUpdate,
    DebitNoteStatusUpdate,
    DebitNoteResponse,
    DebitNoteListResponse,
)
from app.services.debit_note_service import DebitNoteService

router = APIRouter(tags=["Debit Notes"])


@router.get("", response_model=DebitNoteListResponse)
async def list_debit_notes(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    vendor_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
):
    """Get paginated list of debit notes."""
    service = DebitNoteService(db, current_user.id)
    skip = (page - 1) * size

    notes, total = await service.get_debit_notes(
        status=status,
        vendor_id=vendor_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        skip=skip,
        limit=size,
    )

    return DebitNoteListResponse(
        items=[DebitNoteResponse.model_validate(n) for n in notes],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{debit_note_id}", response_model=DebitNoteResponse)
async def get_debit_note(
    debit_note_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    note = await DebitNoteService(db, current_user.id).get_debit_note(debit_note_id)
    return DebitNoteResponse.model_validate(note)


@router.post("", response_model=DebitNoteResponse, status_code=status.HTTP_201_CREATED)
async def create_debit_note(
    data: DebitNoteCreate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Create a debit note against a purchase.

    The vendor is taken from the purchase. Creating it directly as
    approved stocks the items out immediately.
    """
    note = await DebitNoteService(db, current_user.id).create_debit_note(data)
    return DebitNoteResponse.model_validate(note)


@router.put("/{debit_note_id}", response_model=DebitNoteResponse)
async def update_debit_note(
    debit_note_id: uuid.UUID,
    data: DebitNoteUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """Update a debit note that is not yet approved."""
    note = await DebitNoteService(db, current_user.id).update_debit_note(debit_note_id, data)
    return DebitNoteResponse.model_validate(note)


@router.patch("/{debit_note_id}/status", response_model=DebitNoteResponse)
async def update_debit_note_status(
    debit_note_id: uuid.UUID,
    data: DebitNoteStatusUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Change a debit note's status.

    Approval stocks every item out exactly once. An approved note cannot
    move to another status.
    """
    note = await DebitNoteService(db, current_user.id).update_status(
        debit_note_id, data.status, approved_by=data.approved_by
    )
    return DebitNoteResponse.model_validate(note)


@router.delete("/{debit_note_id}", response_model=MessageResponse)
async def delete_debit_note(
    debit_note_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    await DebitNoteService(db, current_user.id).delete_debit_note(debit_note_id)
    return MessageResponse(message="Debit note deleted successfully")
