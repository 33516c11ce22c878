from pydantic import BaseModel, Field

from app.models.purchase import PaymentMode
from app.models.supplier_payment import SupplierPaymentStatus
from app.schemas.base import BaseResponseSchema
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
import uuid


class SupplierPaymentCreate(BaseModel):
    """Supplier payment; an optional ``attachment`` file rides along in the form."""
    purchase_id: uuid.UUID
    reference_number: Optional[str] = Field(None, max_length=100)
    payment_date: date
    payment_mode: PaymentMode
    amount: Decimal = Field(..., gt=0)
    notes: Optional[str] = None
    status: SupplierPaymentStatus = SupplierPaymentStatus.COMPLETED


class SupplierPaymentUpdate(BaseModel):
    reference_number: Optional[str] = Field(None, max_length=100)
    payment_date: Optional[date] = None
    payment_mode: Optional[PaymentMode] = None
    notes: Optional[str] = None


class SupplierPaymentResponse(BaseResponseSchema):
    id: uuid.UUID
    payment_number: str
    purchase_id: uuid.UUID
    supplier_id: uuid.UUID
    reference_number: Optional[str] = None
    payment_date: date
    payment_mode: str
    amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    notes: Optional[str] = None
    attachment: Optional[str] = None
    status: str
    created_by: uuid.UUID
    is_deleted: bool
    created_at: datetime
    updated_at: datetime


class SupplierPaymentResult(BaseModel):
    """Created payment plus the purchase state it produced."""
    payment: SupplierPaymentResponse
    purchase_status: str
    purchase_paid_amount: Decimal
    purchase_balance_amount: Decimal


class SupplierPaymentListResponse(BaseModel):
    items: List[SupplierPaymentResponse]
    total: int
    page: int
    size: int
    pages: int
