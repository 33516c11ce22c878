from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid


class StockMovementRequest(BaseModel):
    """Manual stock in / stock out."""
    product_id: uuid.UUID
    quantity: Decimal = Field(..., gt=0)
    unit_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None


class InventoryHistoryResponse(BaseResponseSchema):
    id: uuid.UUID
    product_id: uuid.UUID
    type: str
    adjustment: Decimal
    quantity: Decimal
    reference_id: Optional[uuid.UUID] = None
    reference_type: str
    unit_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_by: uuid.UUID
    created_at: datetime


class InventoryProductBrief(BaseModel):
    id: uuid.UUID
    name: str
    code: str
    alert_quantity: int = 0


class InventoryResponse(BaseResponseSchema):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: Decimal
    product: Optional[InventoryProductBrief] = None
    updated_at: datetime


class InventoryDetailResponse(InventoryResponse):
    history: List[InventoryHistoryResponse] = []


class InventoryListResponse(BaseModel):
    items: List[InventoryResponse]
    total: int
    page: int
    size: int
    pages: int


class InventoryVerifyResponse(BaseModel):
    product_id: uuid.UUID
    stored_quantity: Decimal
    history_quantity: Decimal
    consistent: bool
