"""Pieces shared by every transactional document (invoice, quotation, purchase...)."""
from dataclasses import asdict
from decimal import Decimal
from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.core.amounts import compute_totals
from app.schemas.base import BaseResponseSchema


class LineItem(BaseModel):
    """
    One document line.

    ``amount`` is optional; when omitted it is quantity * rate.
    """
    model_config = ConfigDict(extra='ignore')

    product_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(None, max_length=200)
    unit_id: Optional[uuid.UUID] = None
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    rate: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    tax_info: Optional[dict] = None
    amount: Optional[Decimal] = Field(None, ge=0)


class DebitNoteItem(LineItem):
    reason: Optional[str] = Field(None, max_length=255)


class ComputedTotals(BaseModel):
    """Totals derived from the items alone, before any client override."""
    taxable_amount: Decimal
    total_discount: Decimal
    total_tax: Decimal
    total_amount: Decimal


class SequencePreview(BaseModel):
    prefix: str
    next_number: str
    current_number: int


class DocumentResponse(BaseResponseSchema):
    """Common read shape for documents carrying JSON line items."""
    items: List[dict] = []

    @computed_field
    @property
    def computed_totals(self) -> ComputedTotals:
        computed = compute_totals(self.items).computed
        return ComputedTotals(**asdict(computed))
