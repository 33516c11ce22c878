from pydantic import BaseModel, Field, field_validator

from app.schemas.base import BaseResponseSchema
from typing import Optional, List
from datetime import datetime
import uuid


class CurrencyBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    code: str = Field(..., pattern=r"^[A-Za-z]{3}$", description="ISO 4217 code")
    symbol: str = Field(..., min_length=1, max_length=5)
    status: bool = True
    is_default: bool = False

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.upper()


class CurrencyCreate(CurrencyBase):
    pass


class CurrencyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    code: Optional[str] = Field(None, pattern=r"^[A-Za-z]{3}$")
    symbol: Optional[str] = Field(None, min_length=1, max_length=5)
    status: Optional[bool] = None
    is_default: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class CurrencyStatusUpdate(BaseModel):
    status: Optional[bool] = None
    is_default: Optional[bool] = None


class CurrencyResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    code: str
    symbol: str
    status: bool
    is_default: bool
    is_deleted: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class CurrencyListResponse(BaseModel):
    items: List[CurrencyResponse]
    total: int
    page: int
    size: int
    pages: int
