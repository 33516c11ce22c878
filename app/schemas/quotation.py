from pydantic import BaseModel, Field, model_validator

from app.models.quotation import QuotationStatus
from app.models.invoice import SignType
from app.schemas.base import BaseUpdateSchema
from app.schemas.document import DocumentResponse, LineItem
from app.schemas.invoice import InvoiceResponse
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal
import uuid


class QuotationCreate(BaseModel):
    """Quotation creation schema (JSON ``data`` part of a multipart form)."""
    customer_id: uuid.UUID
    quotation_date: date
    expiry_date: Optional[date] = None
    reference_no: Optional[str] = Field(None, max_length=100)
    items: List[LineItem] = Field(..., min_length=1)
    status: QuotationStatus = QuotationStatus.DRAFT
    payment_terms: Optional[str] = Field(None, max_length=255)
    convert_type: Literal["quotation", "invoice", "purchase"] = "quotation"

    sub_total: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_tax: Optional[Decimal] = Field(None, ge=0)
    grand_total: Optional[Decimal] = Field(None, ge=0)
    round_off: bool = False

    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
    sign_type: SignType = SignType.NONE
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = Field(None, max_length=100)
    bill_from: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.expiry_date and self.expiry_date < self.quotation_date:
            raise ValueError("expiry_date cannot be before quotation_date")
        return self


class QuotationUpdate(BaseUpdateSchema):
    required_fields = frozenset({"customer_id", "quotation_date", "items", "status", "round_off"})

    customer_id: Optional[uuid.UUID] = None
    quotation_date: Optional[date] = None
    expiry_date: Optional[date] = None
    reference_no: Optional[str] = Field(None, max_length=100)
    items: Optional[List[LineItem]] = Field(None, min_length=1)
    status: Optional[QuotationStatus] = None
    payment_terms: Optional[str] = Field(None, max_length=255)
    sub_total: Optional[Decimal] = Field(None, ge=0)
    total_discount: Optional[Decimal] = Field(None, ge=0)
    total_tax: Optional[Decimal] = Field(None, ge=0)
    grand_total: Optional[Decimal] = Field(None, ge=0)
    round_off: Optional[bool] = None
    bank_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    terms_and_condition: Optional[str] = None
    sign_type: Optional[SignType] = None
    signature_id: Optional[uuid.UUID] = None
    signature_name: Optional[str] = Field(None, max_length=100)


class QuotationResponse(DocumentResponse):
    id: uuid.UUID
    quotation_number: str
    customer_id: uuid.UUID
    quotation_date: date
    expiry_date: Optional[date] = None
    reference_no: Optional[str] = None
    status: str
    payment_terms: Optional[str] = None
    convert_type: str
    converted_invoice_id: Optional[uuid.UUID] = None
    sub_total: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal
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


class QuotationListResponse(BaseModel):
    items: List[QuotationResponse]
    total: int
    page: int
    size: int
    pages: int


class QuotationConvertRequest(BaseModel):
    """Optional overrides for the invoice created from a quotation."""
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    payment_method: str = Field(default="Cash", min_length=1, max_length=50)


class QuotationConvertResult(BaseModel):
    """The converted quotation and the invoice created from it."""
    quotation: QuotationResponse
    invoice: InvoiceResponse
