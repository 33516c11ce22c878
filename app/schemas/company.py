from pydantic import BaseModel, EmailStr, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional
from datetime import datetime
import uuid


class CompanySettingsUpdate(BaseModel):
    """Company details; logo/favicon/banner files come as form parts."""
    company_name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    fax: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=10)


class CompanySettingsResponse(BaseResponseSchema):
    id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    fax: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    pincode: Optional[str] = None
    site_logo: Optional[str] = None
    favicon: Optional[str] = None
    company_logo: Optional[str] = None
    company_banner: Optional[str] = None
    updated_at: Optional[datetime] = None
