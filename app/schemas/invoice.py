from pydantic import BaseModel, Field, model_validator

from app.models.invoice import InvoiceStatus, RecurringCadence, SignType
from app.schemas.base import BaseResponseSchema, BaseUpdateSchema
from app.schemas.document import DocumentResponse, LineItem
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
import uuid


class InvoiceBase(BaseModel):
    """Fields shared by invoice create and read."""
    customer_id: uuid.UUID
    invoice_date: date
    due_date: date
    reference_no: Optional[str] = Field(None, max_length=100)
    payment_method: str = Field(..., min_length=1, max_length=50)

    round_off: bool = False
    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None

    is_recurring: bool = False
    recurring: Optional[RecurringCadence] = None
    recurring_duration: Optional[int] = Field(None, ge=1)

    sign_type: SignType = SignType.NONE
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = Field(None, max_length=100)


class InvoiceCreate(InvoiceBase):
    """
    Invoice creation schema.

    Sent as the JSON ``data`` part of a multipart form so that an
    eSignature image can travel alongside. Aggregates left out are
    computed from the items.
    """
    items: List[LineItem] = Field(..., min_length=1)
    taxable_amount: Optional[Decimal] = Field(None, ge=0)
    vat: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    bill_from: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def check_dates_and_recurrence(self):
        if self.due_date < self.invoice_date:
            raise ValueError("due_date cannot be before invoice_date")
        if self.is_recurring and (self.recurring is None or self.recurring_duration is None):
            raise ValueError("recurring and recurring_duration are required when is_recurring is true")
        return self


class InvoiceUpdate(BaseUpdateSchema):
    """Partial invoice update; items replace the stored items wholesale."""
    required_fields = frozenset({
        "customer_id", "invoice_date", "due_date", "items", "status",
        "payment_method", "round_off", "is_recurring", "recurring_duration",
    })

    customer_id: Optional[uuid.UUID] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    reference_no: Optional[str] = Field(None, max_length=100)
    items: Optional[List[LineItem]] = Field(None, min_length=1)
    status: Optional[InvoiceStatus] = None
    payment_method: Optional[str] = Field(None, min_length=1, max_length=50)
    taxable_amount: Optional[Decimal] = Field(None, ge=0)
    vat: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    round_off: Optional[bool] = None
    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring: Optional[RecurringCadence] = None
    recurring_duration: Optional[int] = Field(None, ge=1)
    sign_type: Optional[SignType] = None
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = Field(None, max_length=100)


class InvoiceResponse(DocumentResponse):
    """Invoice response schema."""
    id: uuid.UUID
    invoice_number: str
    customer_id: uuid.UUID
    invoice_date: date
    due_date: date
    reference_no: Optional[str] = None
    status: str
    payment_method: str
    taxable_amount: Decimal
    vat: Decimal
    total_discount: Decimal
    total_amount: Decimal
    round_off: bool
    paid_amount: Decimal
    balance_amount: Decimal
    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
    is_recurring: bool
    recurring: Optional[str] = None
    recurring_duration: int
    next_recurring_date: Optional[date] = None
    last_rolled_on: Optional[date] = None
    parent_invoice_id: Optional[uuid.UUID] = None
    sign_type: str
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = None
    signature_image: Optional[str] = None
    bill_from: Optional[uuid.UUID] = None
    bill_to: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    is_deleted: bool
    created_at: datetime
    updated_at: datetime


class InvoiceListResponse(BaseModel):
    """Paginated invoice list."""
    items: List[InvoiceResponse]
    total: int
    page: int
    size: int
    pages: int


class FormattedInvoiceListResponse(BaseModel):
    """Paginated list of formatted (display) invoices."""
    items: List[dict]
    total: int
    page: int
    size: int
    pages: int


class RecurringInvoiceCreate(BaseModel):
    parent_invoice_id: uuid.UUID


class RecurringInvoiceResult(BaseModel):
    """Outcome of rolling one recurring invoice for a day."""
    created: bool
    reason: Optional[str] = None
    invoice: Optional[InvoiceResponse] = None
    next_recurring_date: Optional[date] = None


class InvoicePaymentCreate(BaseModel):
    amount: Decimal = Field(..., ge=0)
    payment_method: str = Field(..., min_length=1, max_length=50)
    received_on: Optional[date] = None
    notes: Optional[str] = None


class InvoicePaymentResponse(BaseResponseSchema):
    id: uuid.UUID
    invoice_id: uuid.UUID
    amount: Decimal
    payment_method: str
    received_on: date
    notes: Optional[str] = None
    received_by: uuid.UUID
    created_at: datetime


class InvoicePaymentResult(BaseModel):
    payment: InvoicePaymentResponse
    invoice_status: str
    paid_amount: Decimal
    balance_amount: Decimal
