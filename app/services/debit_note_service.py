"""
Debit Note Service

Debit notes return goods against a purchase.

Status flow:
    draft / pending → approved   (stock out, exactly once; final)
                    → rejected
                    → cancelled

Approval stocks the note's items out without a floor: the goods were
already returned, so the ledger records them even if that drives the
quantity negative.
"""
import uuid
import logging
from datetime import date, datetime, timezone
from typing import Optional, List, Tuple

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.amounts import normalize_items
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.models.debit_note import DebitNote, DebitNoteStatus
from app.models.document_sequence import DocumentType
from app.models.inventory import MovementType, ReferenceType
from app.models.purchase import Purchase
from app.schemas.debit_note import DebitNoteCreate, DebitNoteUpdate
from app.services.document_sequence_service import DocumentSequenceService
from app.services.document_service import (
    DocumentReferences, document_totals, assign_totals, totals_touched,
)
from app.services.inventory_service import InventoryService
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)

VALID_STATUSES = tuple(status.value for status in DebitNoteStatus)


class DebitNoteService:
    """Service for debit notes created by one owner."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id
        self.refs = DocumentReferences(db, user_id)
        self.inventory = InventoryService(db, user_id)

    async def get_debit_notes(
        self,
        status: Optional[str] = None,
        vendor_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[DebitNote], int]:
        stmt = select(DebitNote).where(
            DebitNote.created_by == self.user_id,
            DebitNote.is_deleted == False,  # noqa: E712
        )
        if status:
            stmt = stmt.where(DebitNote.status == status)
        if vendor_id:
            stmt = stmt.where(DebitNote.vendor_id == vendor_id)
        if start_date:
            stmt = stmt.where(DebitNote.debit_note_date >= start_date)
        if end_date:
            stmt = stmt.where(DebitNote.debit_note_date <= end_date)
        if search:
            pattern = like(search)
            stmt = stmt.where(
                or_(
                    DebitNote.debit_note_number.ilike(pattern, escape=LIKE_ESCAPE),
                    DebitNote.notes.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        stmt = stmt.order_by(DebitNote.debit_note_date.desc(), DebitNote.created_at.desc())
        return await paginate(self.db, stmt, skip, limit)

    async def get_debit_note(self, debit_note_id: uuid.UUID) -> DebitNote:
        result = await self.db.execute(
            select(DebitNote).where(DebitNote.id == debit_note_id, DebitNote.created_by == self.user_id)
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError("Debit note not found")
        return note

    async def _get_live(self, debit_note_id: uuid.UUID) -> DebitNote:
        result = await self.db.execute(
            select(DebitNote)
            .where(
                DebitNote.id == debit_note_id,
                DebitNote.created_by == self.user_id,
                DebitNote.is_deleted == False,  # noqa: E712
            )
            .with_for_update()
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError("Debit note not found")
        return note

    async def _approve(self, note: DebitNote, approved_by: uuid.UUID) -> None:
        moved = await self.inventory.apply_items(
            note.items, -1, ReferenceType.DEBIT_NOTE, note.id,
            notes=f"Debit note {note.debit_note_number}",
            movement_type=MovementType.STOCK_OUT,
        )
        note.status = DebitNoteStatus.APPROVED.value
        note.approved_by = approved_by
        note.approved_at = datetime.now(timezone.utc)
        logger.info(f"Approved debit note {note.debit_note_number} ({moved} stock movements)")

    async def create_debit_note(self, data: DebitNoteCreate) -> DebitNote:
        result = await self.db.execute(
            select(Purchase).where(
                Purchase.id == data.purchase_id,
                Purchase.user_id == self.user_id,
                Purchase.is_deleted == False,  # noqa: E712
            )
        )
        purchase = result.scalar_one_or_none()
        if purchase is None:
            raise NotFoundError("Purchase not found")
        await self.refs.check_items(data.items)

        items = normalize_items(data.items)
        totals = document_totals(items, data.model_dump())

        note = DebitNote(
            purchase_id=purchase.id,
            vendor_id=purchase.vendor_id,
            debit_note_date=data.debit_note_date,
            items=items,
            status=DebitNoteStatus.DRAFT.value,
            notes=data.notes,
            created_by=self.user_id,
            is_deleted=False,
        )
        assign_totals(note, totals)
        note.debit_note_number = await DocumentSequenceService(self.db).get_next_number(
            DocumentType.DEBIT_NOTE.value
        )
        self.db.add(note)
        await self.db.flush()

        if data.status == DebitNoteStatus.APPROVED.value:
            await self._approve(note, self.user_id)
        else:
            note.status = data.status

        await self.db.flush()
        await self.db.refresh(note)
        logger.info(f"Created debit note {note.debit_note_number} against {purchase.purchase_number}")
        return note

    async def update_debit_note(self, debit_note_id: uuid.UUID, data: DebitNoteUpdate) -> DebitNote:
        note = await self._get_live(debit_note_id)
        if note.status == DebitNoteStatus.APPROVED.value:
            raise BusinessRuleError("An approved debit note cannot be modified")

        update_data = data.model_dump(exclude_unset=True)
        if data.items is not None:
            await self.refs.check_items(data.items)
            update_data["items"] = normalize_items(data.items)

        recalc = totals_touched(update_data)
        overrides = {
            key: update_data.pop(key, None)
            for key in ("taxable_amount", "total_discount", "total_tax", "total_amount")
        }
        for field, value in update_data.items():
            setattr(note, field, value)

        if recalc:
            assign_totals(note, document_totals(note.items, overrides))

        await self.db.flush()
        await self.db.refresh(note)
        return note

    async def update_status(
        self,
        debit_note_id: uuid.UUID,
        status: str,
        approved_by: Optional[uuid.UUID] = None
    ) -> DebitNote:
        """
        Move a debit note to ``status``.

        Approval applies the stock out once; an approved note cannot move
        to any other status.
        """
        if status not in VALID_STATUSES:
            raise BusinessRuleError(f"Invalid status '{status}'. Valid: {', '.join(VALID_STATUSES)}")
        if approved_by is not None:
            await self.refs.user(approved_by)

        note = await self._get_live(debit_note_id)
        if note.status == DebitNoteStatus.APPROVED.value:
            if status != DebitNoteStatus.APPROVED.value:
                raise BusinessRuleError("An approved debit note cannot change status")
            return note

        if status == DebitNoteStatus.APPROVED.value:
            await self._approve(note, approved_by or self.user_id)
        else:
            note.status = status

        await self.db.flush()
        await self.db.refresh(note)
        return note

    async def delete_debit_note(self, debit_note_id: uuid.UUID) -> DebitNote:
        note = await self._get_live(debit_note_id)
        if note.status == DebitNoteStatus.APPROVED.value:
            raise BusinessRuleError("An approved debit note cannot be deleted")
        note.is_deleted = True
        await self.db.flush()
        return note
