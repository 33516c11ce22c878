from pydantic import BaseModel, EmailStr, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal
import uuid


class SupplierBase(BaseModel):
    supplier_name: str = Field(..., min_length=1, max_length=200)
    supplier_email: EmailStr
    supplier_phone: str = Field(..., min_length=5, max_length=20)
    balance: Decimal = Field(default=Decimal("0"))
    balance_type: Optional[Literal["credit", "debit"]] = None


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    supplier_name: Optional[str] = Field(None, min_length=1, max_length=200)
    supplier_email: Optional[EmailStr] = None
    supplier_phone: Optional[str] = Field(None, min_length=5, max_length=20)
    balance: Optional[Decimal] = None
    balance_type: Optional[Literal["credit", "debit"]] = None
    status: Optional[bool] = None


class SupplierResponse(BaseResponseSchema):
    """Supplier link row; ``vendor_id`` is the supplier's user id used on purchases."""
    id: uuid.UUID
    vendor_id: uuid.UUID
    supplier_name: str
    supplier_email: str
    supplier_phone: str
    balance: Decimal
    balance_type: Optional[str] = None
    status: bool
    is_deleted: bool
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class SupplierListResponse(BaseModel):
    items: List[SupplierResponse]
    total: int
    page: int
    size: int
    pages: int
