from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional, List
from datetime import datetime
import uuid


class SignatureCreate(BaseModel):
    """Signature metadata; the image comes as the ``signature_image`` file part."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: bool = True
    mark_as_default: bool = False


class SignatureUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[bool] = None
    mark_as_default: Optional[bool] = None


class SignatureResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    image_path: str
    description: Optional[str] = None
    status: bool
    mark_as_default: bool
    is_deleted: bool
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class SignatureListResponse(BaseModel):
    items: List[SignatureResponse]
    total: int
    page: int
    size: int
    pages: int
