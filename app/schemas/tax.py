from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid


class TaxRateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    rate: Decimal = Field(..., ge=0, le=100, description="Percentage")
    status: bool = True


class TaxRateCreate(TaxRateBase):
    pass


class TaxRateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    rate: Optional[Decimal] = Field(None, ge=0, le=100)
    status: Optional[bool] = None


class TaxRateResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    rate: Decimal
    status: bool
    created_at: datetime
    updated_at: datetime


class TaxRateListResponse(BaseModel):
    items: List[TaxRateResponse]
    total: int
    page: int
    size: int
    pages: int


class TaxGroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    tax_rate_ids: List[uuid.UUID] = Field(..., min_length=1)
    status: bool = True


class TaxGroupCreate(TaxGroupBase):
    pass


class TaxGroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    tax_rate_ids: Optional[List[uuid.UUID]] = Field(None, min_length=1)
    status: Optional[bool] = None


class TaxGroupResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    tax_rate_ids: List[uuid.UUID]
    status: bool
    total_rate: Decimal = Decimal("0")
    created_at: datetime
    updated_at: datetime


class TaxGroupListResponse(BaseModel):
    items: List[TaxGroupResponse]
    total: int
    page: int
    size: int
    pages: int
