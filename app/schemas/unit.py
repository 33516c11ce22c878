from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional, List
from datetime import datetime
import uuid


class UnitBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    short_name: str = Field(..., min_length=1, max_length=20)
    status: bool = True


class UnitCreate(UnitBase):
    pass


class UnitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    short_name: Optional[str] = Field(None, min_length=1, max_length=20)
    status: Optional[bool] = None


class UnitResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    short_name: str
    status: bool
    created_at: datetime
    updated_at: datetime


class UnitListResponse(BaseModel):
    """Paginated unit list."""
    items: List[UnitResponse]
    total: int
    page: int
    size: int
    pages: int
