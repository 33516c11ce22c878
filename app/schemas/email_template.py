from pydantic import BaseModel, Field, field_validator

from app.schemas.base import BaseCreateSchema, BaseResponseSchema, BaseUpdateSchema
from typing import Optional, List
from datetime import datetime
import uuid


class NotificationTypeCreate(BaseCreateSchema):
    title: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Za-z0-9_-]+$")
    status: bool = True

    @field_validator("slug")
    @classmethod
    def lower_slug(cls, v: str) -> str:
        return v.lower()


class NotificationTypeResponse(BaseResponseSchema):
    id: uuid.UUID
    title: str
    slug: str
    status: bool
    created_at: datetime


class EmailTemplateCreate(BaseCreateSchema):
    title: str = Field(..., min_length=1, max_length=200)
    notification_type_id: uuid.UUID
    description: Optional[str] = None
    subject: str = Field(..., min_length=1, max_length=255)
    sms_content: Optional[str] = None
    notification_content: Optional[str] = None
    status: bool = True


class EmailTemplateUpdate(BaseUpdateSchema):
    required_fields = frozenset({"title", "notification_type_id", "subject", "status"})

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    notification_type_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    subject: Optional[str] = Field(None, min_length=1, max_length=255)
    sms_content: Optional[str] = None
    notification_content: Optional[str] = None
    status: Optional[bool] = None


class EmailTemplateResponse(BaseResponseSchema):
    id: uuid.UUID
    title: str
    notification_type_id: uuid.UUID
    notification_type: Optional[NotificationTypeResponse] = None
    description: Optional[str] = None
    subject: str
    sms_content: Optional[str] = None
    notification_content: Optional[str] = None
    status: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class EmailTemplateListResponse(BaseModel):
    """Paginated template list, newest first."""
    items: List[EmailTemplateResponse]
    total: int
    page: int
    size: int
    pages: int
