from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.preferences import EmailProviderType
from app.schemas.base import BaseResponseSchema
from typing import Optional, List, Literal
from datetime import datetime
from zoneinfo import available_timezones
import uuid


DATE_FORMATS = ["DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD", "DD-MM-YYYY", "DD MMM YYYY", "MMM DD, YYYY"]
TIME_FORMATS = ["HH:mm", "hh:mm A", "HH:mm:ss", "hh:mm:ss A"]
WEEK_DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


# ==================== EMAIL SETTINGS ====================

class EmailSettingsUpdate(BaseModel):
    provider_type: Optional[EmailProviderType] = None

    node_host: Optional[str] = Field(None, max_length=255)
    node_port: Optional[int] = Field(None, ge=1, le=65535)
    node_username: Optional[str] = Field(None, max_length=255)
    node_password: Optional[str] = Field(None, max_length=255)
    node_from_email: Optional[EmailStr] = None
    node_status: Optional[bool] = None

    smtp_host: Optional[str] = Field(None, max_length=255)
    smtp_port: Optional[int] = Field(None, ge=1, le=65535)
    smtp_username: Optional[str] = Field(None, max_length=255)
    smtp_password: Optional[str] = Field(None, max_length=255)
    smtp_from_email: Optional[EmailStr] = None
    smtp_from_name: Optional[str] = Field(None, max_length=100)
    smtp_encryption: Optional[Literal["none", "ssl", "tls"]] = None
    smtp_status: Optional[bool] = None


class EmailSettingsResponse(BaseModel):
    """Email settings without secrets; ``*_password_set`` says whether one is stored."""
    user_id: uuid.UUID
    provider_type: str
    node_host: Optional[str] = None
    node_port: Optional[int] = None
    node_username: Optional[str] = None
    node_from_email: Optional[str] = None
    node_status: bool = False
    node_password_set: bool = False
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_username: Optional[str] = None
    smtp_from_email: Optional[str] = None
    smtp_from_name: Optional[str] = None
    smtp_encryption: Optional[str] = None
    smtp_status: bool = False
    smtp_password_set: bool = False
    updated_at: Optional[datetime] = None


# ==================== LOCALIZATION ====================

class LocalizationUpdate(BaseModel):
    date_format: Optional[str] = None
    time_format: Optional[str] = None
    timezone: Optional[str] = None
    start_week: Optional[Literal["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]] = None
    is_active: Optional[bool] = None

    @field_validator("date_format")
    @classmethod
    def check_date_format(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in DATE_FORMATS:
            raise ValueError(f"Unsupported date format. Allowed: {', '.join(DATE_FORMATS)}")
        return v

    @field_validator("time_format")
    @classmethod
    def check_time_format(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in TIME_FORMATS:
            raise ValueError(f"Unsupported time format. Allowed: {', '.join(TIME_FORMATS)}")
        return v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in available_timezones():
            raise ValueError(f"Unknown time zone '{v}'")
        return v


class LocalizationResponse(BaseResponseSchema):
    user_id: uuid.UUID
    date_format: str
    time_format: str
    timezone: str
    start_week: str
    is_active: bool
    updated_at: Optional[datetime] = None


class LocalizationOptions(BaseModel):
    date_formats: List[str]
    time_formats: List[str]
    timezones: List[str]
    week_days: List[str]


# ==================== INVOICE TEMPLATE ====================

class InvoiceTemplateUpdate(BaseModel):
    default_invoice_template: str = Field(..., min_length=1, max_length=50)


class InvoiceTemplateResponse(BaseResponseSchema):
    id: uuid.UUID
    user_id: uuid.UUID
    default_invoice_template: str
    created_at: datetime
    updated_at: datetime
