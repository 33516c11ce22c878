from pydantic import BaseModel, EmailStr, Field, computed_field

from app.config import settings
from app.core.formatting import resolve_image_url
from app.schemas.base import BaseResponseSchema
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
import uuid


class UserResponse(BaseResponseSchema):
    """User as returned by the API; the password hash is never exposed."""
    id: uuid.UUID
    email: str
    phone: Optional[str] = None
    first_name: str
    last_name: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    profile_image: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    user_type: int
    balance: Decimal = Decimal("0")
    balance_type: Optional[str] = None
    default_currency_id: Optional[uuid.UUID] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    @computed_field
    @property
    def profile_image_url(self) -> str:
        return resolve_image_url(self.profile_image, placeholder=settings.PROFILE_PLACEHOLDER_URL)


class ProfileUpdate(BaseModel):
    """Profile update; sent as the JSON ``data`` part of a multipart form."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    gender: Optional[str] = Field(None, pattern="^(male|female|other)$")
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    country: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)


class UserListResponse(BaseModel):
    """Paginated user list."""
    items: List[UserResponse]
    total: int
    page: int
    size: int
    pages: int
