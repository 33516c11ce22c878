from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional, List
from datetime import datetime
import uuid


class BankDetailBase(BaseModel):
    account_holder_name: str = Field(..., min_length=1, max_length=200)
    bank_name: str = Field(..., min_length=1, max_length=200)
    branch_name: Optional[str] = Field(None, max_length=200)
    account_number: str = Field(..., min_length=4, max_length=50)
    ifsc_code: Optional[str] = Field(None, max_length=20)
    status: bool = True


class BankDetailCreate(BankDetailBase):
    pass


class BankDetailUpdate(BaseModel):
    account_holder_name: Optional[str] = Field(None, min_length=1, max_length=200)
    bank_name: Optional[str] = Field(None, min_length=1, max_length=200)
    branch_name: Optional[str] = Field(None, max_length=200)
    account_number: Optional[str] = Field(None, min_length=4, max_length=50)
    ifsc_code: Optional[str] = Field(None, max_length=20)
    status: Optional[bool] = None


class StatusUpdate(BaseModel):
    status: bool


class BankDetailResponse(BaseResponseSchema):
    id: uuid.UUID
    account_holder_name: str
    bank_name: str
    branch_name: Optional[str] = None
    account_number: str
    ifsc_code: Optional[str] = None
    status: bool
    is_deleted: bool
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class BankDetailListResponse(BaseModel):
    items: List[BankDetailResponse]
    total: int
    page: int
    size: int
    pages: int
