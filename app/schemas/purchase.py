from pydantic import BaseModel, Field, model_validator

from app.models.invoice import SignType
from app.models.purchase import PurchaseOrderStatus, PaymentMode
from app.schemas.base import BaseUpdateSchema
from app.schemas.document import DocumentResponse, LineItem
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal
import uuid


# ==================== PURCHASE ORDER ====================

class PurchaseOrderCreate(BaseModel):
    """Purchase order creation schema."""
    vendor_id: uuid.UUID = Field(..., description="Supplier user id")
    po_date: date
    due_date: Optional[date] = None
    reference_no: Optional[str] = Field(None, max_length=100)
    items: List[LineItem] = Field(..., min_length=1)
    convert_type: Literal["purchase", "estimate", "invoice"] = "purchase"

    taxable_amount: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_tax: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    round_off: bool = False

    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
    sign_type: SignType = SignType.NONE
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def check_dates(self):
        if self.due_date and self.due_date < self.po_date:
            raise ValueError("due_date cannot be before po_date")
        return self


class PurchaseOrderUpdate(BaseUpdateSchema):
    required_fields = frozenset({"vendor_id", "po_date", "items", "status", "convert_type", "round_off"})

    vendor_id: Optional[uuid.UUID] = None
    po_date: Optional[date] = None
    due_date: Optional[date] = None
    reference_no: Optional[str] = Field(None, max_length=100)
    items: Optional[List[LineItem]] = Field(None, min_length=1)
    status: Optional[PurchaseOrderStatus] = None
    convert_type: Optional[Literal["purchase", "estimate", "invoice"]] = None
    taxable_amount: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_tax: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    round_off: Optional[bool] = None
    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
    sign_type: Optional[SignType] = None
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = Field(None, max_length=100)


class PurchaseOrderResponse(DocumentResponse):
    id: uuid.UUID
    po_number: str
    vendor_id: uuid.UUID
    po_date: date
    due_date: Optional[date] = None
    reference_no: Optional[str] = None
    status: str
    convert_type: str
    converted_purchase_id: Optional[uuid.UUID] = None
    taxable_amount: Decimal
    total_discount: Decimal
    total_tax: Decimal
    total_amount: Decimal
    round_off: bool
    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
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


class PurchaseOrderListResponse(BaseModel):
    items: List[PurchaseOrderResponse]
    total: int
    page: int
    size: int
    pages: int


class PurchaseOrderConvertRequest(BaseModel):
    purchase_date: Optional[date] = None
    supplier_invoice_serial_number: Optional[str] = Field(None, max_length=100)
    payment_mode: Optional[PaymentMode] = None


# ==================== PURCHASE ====================

class PurchaseCreate(BaseModel):
    """
    Purchase creation schema (JSON ``data`` part of a multipart form).

    A manualSignature needs the ``signature_image`` file part.
    """
    vendor_id: uuid.UUID = Field(..., description="Supplier user id")
    purchase_date: date
    reference_no: Optional[str] = Field(None, max_length=100)
    supplier_invoice_serial_number: Optional[str] = Field(None, max_length=100)
    items: List[LineItem] = Field(..., min_length=1)
    payment_mode: Optional[PaymentMode] = None

    taxable_amount: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_tax: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    round_off: bool = False

    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
    sign_type: SignType = SignType.NONE
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = Field(None, max_length=100)


class PurchaseUpdate(BaseUpdateSchema):
    required_fields = frozenset({"vendor_id", "purchase_date", "items", "status", "round_off"})

    vendor_id: Optional[uuid.UUID] = None
    purchase_date: Optional[date] = None
    reference_no: Optional[str] = Field(None, max_length=100)
    supplier_invoice_serial_number: Optional[str] = Field(None, max_length=100)
    items: Optional[List[LineItem]] = Field(None, min_length=1)
    payment_mode: Optional[PaymentMode] = None
    # Payments drive pending/partially_paid/paid; a client may only cancel,
    # or send "pending" to reinstate a cancelled purchase
    status: Optional[Literal["pending", "cancelled"]] = None
    taxable_amount: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_tax: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    round_off: Optional[bool] = None
    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
    sign_type: Optional[SignType] = None
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = Field(None, max_length=100)


class PurchaseResponse(DocumentResponse):
    id: uuid.UUID
    purchase_number: str
    vendor_id: uuid.UUID
    purchase_date: date
    reference_no: Optional[str] = None
    supplier_invoice_serial_number: Optional[str] = None
    status: str
    payment_mode: Optional[str] = None
    taxable_amount: Decimal
    total_discount: Decimal
    total_tax: Decimal
    total_amount: Decimal
    round_off: bool
    paid_amount: Decimal
    balance_amount: Decimal
    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
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


class PurchaseListResponse(BaseModel):
    items: List[PurchaseResponse]
    total: int
    page: int
    size: int
    pages: int


class PurchaseOrderConvertResult(BaseModel):
    purchase_order: PurchaseOrderResponse
    purchase: PurchaseResponse
