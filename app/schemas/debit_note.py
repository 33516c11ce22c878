from pydantic import BaseModel, Field

from app.schemas.base import BaseUpdateSchema
from app.schemas.document import DocumentResponse, DebitNoteItem
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal
import uuid


class DebitNoteCreate(BaseModel):
    purchase_id: uuid.UUID
    debit_note_date: date
    items: List[DebitNoteItem] = Field(..., min_length=1)
    taxable_amount: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_tax: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    status: Literal["draft", "pending", "approved"] = "draft"
    notes: Optional[str] = None


class DebitNoteUpdate(BaseUpdateSchema):
    required_fields = frozenset({"debit_note_date", "items"})

    debit_note_date: Optional[date] = None
    items: Optional[List[DebitNoteItem]] = Field(None, min_length=1)
    taxable_amount: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_tax: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class DebitNoteStatusUpdate(BaseModel):
    # Plain str so an unknown value is a 400 business error, not a 422
    status: str
    approved_by: Optional[uuid.UUID] = None


class DebitNoteResponse(DocumentResponse):
    id: uuid.UUID
    debit_note_number: str
    purchase_id: uuid.UUID
    vendor_id: uuid.UUID
    debit_note_date: date
    taxable_amount: Decimal
    total_discount: Decimal
    total_tax: Decimal
    total_amount: Decimal
    status: str
    notes: Optional[str] = None
    created_by: uuid.UUID
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime


class DebitNoteListResponse(BaseModel):
    items: List[DebitNoteResponse]
    total: int
    page: int
    size: int
    pages: int
