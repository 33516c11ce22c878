from datetime import datetime
from typing import List, Optional
import uuid

from pydantic import BaseModel, Field, computed_field, field_validator

from app.core.formatting import resolve_image_url
from app.schemas.base import BaseResponseSchema


class BrandCreate(BaseModel):
    """Brand sent as the ``data`` field; the logo rides along as ``image``."""
    name: str = Field(..., min_length=1, max_length=100)
    status: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[bool] = None
    image_removed: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class BrandResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    image: Optional[str] = None
    status: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def image_url(self) -> str:
        return resolve_image_url(self.image)


class BrandListResponse(BaseModel):
    items: List[BrandResponse]
    total: int
    page: int
    size: int
    pages: int
