from datetime import datetime
from typing import List, Optional
import uuid

from pydantic import BaseModel, Field, computed_field, field_validator

from app.core.formatting import resolve_image_url
from app.schemas.base import BaseResponseSchema

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class CategoryCreate(BaseModel):
    """
    Product category.

    ``slug`` is optional; when left out it is derived from the name and
    suffixed (-1, -2, ...) until unique.
    """
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120, pattern=SLUG_PATTERN)
    status: bool = True

    @field_validator("slug", mode="before")
    @classmethod
    def lower_slug(cls, v):
        return v.strip().lower() if isinstance(v, str) and v.strip() else None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=120, pattern=SLUG_PATTERN)
    status: Optional[bool] = None
    image_removed: bool = False


class CategoryResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    slug: str
    image: Optional[str] = None
    status: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def image_url(self) -> str:
        return resolve_image_url(self.image)


class CategoryListResponse(BaseModel):
    items: List[CategoryResponse]
    total: int
    page: int
    size: int
    pages: int
