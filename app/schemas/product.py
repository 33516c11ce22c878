from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema
from app.models.product import ItemType, DiscountType
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid


class ProductBase(BaseModel):
    """Base product schema."""
    item_type: ItemType = ItemType.PRODUCT
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50, description="Unique product code / SKU")
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None

    category_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None
    unit_id: Optional[uuid.UUID] = None
    tax_id: Optional[uuid.UUID] = None

    selling_price: Decimal = Field(default=Decimal("0"), ge=0)
    purchase_price: Decimal = Field(default=Decimal("0"), ge=0)
    discount_type: Optional[DiscountType] = None
    discount_value: Decimal = Field(default=Decimal("0"), ge=0)
    alert_quantity: int = Field(default=0, ge=0)

    status: bool = True


class ProductCreate(ProductBase):
    """Product creation schema."""
    pass


class ProductUpdate(BaseModel):
    """Product update schema."""
    item_type: Optional[ItemType] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None
    unit_id: Optional[uuid.UUID] = None
    tax_id: Optional[uuid.UUID] = None
    selling_price: Optional[Decimal] = Field(None, ge=0)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    alert_quantity: Optional[int] = Field(None, ge=0)
    status: Optional[bool] = None
    image_removed: bool = False


class ProductResponse(BaseResponseSchema):
    """Product response schema."""
    id: uuid.UUID
    item_type: str
    name: str
    code: str
    barcode: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None
    unit_id: Optional[uuid.UUID] = None
    tax_id: Optional[uuid.UUID] = None
    selling_price: Decimal
    purchase_price: Decimal
    discount_type: Optional[str] = None
    discount_value: Decimal
    alert_quantity: int
    product_image: Optional[str] = None
    status: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Paginated product list."""
    items: List[ProductResponse]
    total: int
    page: int
    size: int
    pages: int
