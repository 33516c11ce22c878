from pydantic import BaseModel, EmailStr, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional, List, Literal
from datetime import datetime
import uuid


PHONE_PATTERN = r"^[0-9+\-\s()]{7,20}$"


class Address(BaseModel):
    """Billing or shipping address."""
    name: Optional[str] = Field(None, max_length=100)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=10)
    country: Optional[str] = Field(None, max_length=100)


class CustomerBankDetails(BaseModel):
    bank_name: Optional[str] = Field(None, max_length=200)
    branch: Optional[str] = Field(None, max_length=200)
    account_holder: Optional[str] = Field(None, max_length=200)
    account_number: Optional[str] = Field(None, max_length=50)
    ifsc: Optional[str] = Field(None, max_length=20)


class CustomerBase(BaseModel):
    """Base customer schema."""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    website: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    status: Literal["Active", "Inactive"] = "Active"
    billing_address: Optional[Address] = None
    shipping_address: Optional[Address] = None
    bank_details: Optional[CustomerBankDetails] = None


class CustomerCreate(CustomerBase):
    """Customer creation schema (JSON ``data`` part of a multipart form)."""
    pass


class CustomerUpdate(BaseModel):
    """Customer update schema."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    website: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    status: Optional[Literal["Active", "Inactive"]] = None
    billing_address: Optional[Address] = None
    shipping_address: Optional[Address] = None
    bank_details: Optional[CustomerBankDetails] = None
    image_removed: bool = False


class CustomerResponse(BaseResponseSchema):
    """Customer response schema."""
    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
    website: Optional[str] = None
    image: Optional[str] = None
    notes: Optional[str] = None
    status: str
    billing_address: Optional[dict] = None
    shipping_address: Optional[dict] = None
    bank_details: Optional[dict] = None
    user_id: uuid.UUID
    is_deleted: bool
    created_at: datetime
    updated_at: datetime


class CustomerListResponse(BaseModel):
    """Paginated customer list."""
    items: List[CustomerResponse]
    total: int
    page: int
    size: int
    pages: int
