from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.schemas.base import MessageResponse
from app.schemas.currency import (
    CurrencyCreate,
    CurrencyUpdate,
    CurrencyStatusUpdate,
    CurrencyResponse,
    CurrencyListResponse,
)
from app.services.currency_service import CurrencyService

router = APIRouter(tags=["Currencies"])


@router.get("", response_model=CurrencyListResponse)
async def list_currencies(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """Get paginated list of currencies."""
    skip = (page - 1) * size
    currencies, total = await CurrencyService(db).get_currencies(search=search, skip=skip, limit=size)

    return CurrencyListResponse(
        items=[CurrencyResponse.model_validate(c) for c in currencies],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{currency_id}", response_model=CurrencyResponse)
async def get_currency(currency_id: uuid.UUID, db: DB, current_user: CurrentUser):
    currency = await CurrencyService(db).get_currency(currency_id)
    return CurrencyResponse.model_validate(currency)


@router.post("", response_model=CurrencyResponse, status_code=status.HTTP_201_CREATED)
async def create_currency(data: CurrencyCreate, db: DB, current_user: CurrentUser):
    """
    Create a currency.

    A new default becomes every user's ``default_currency_id``.
    """
    currency = await CurrencyService(db).create_currency(data, current_user.id)
    return CurrencyResponse.model_validate(currency)


@router.put("/{currency_id}", response_model=CurrencyResponse)
async def update_currency(
    currency_id: uuid.UUID,
    data: CurrencyUpdate,
    db: DB,
    current_user: CurrentUser,
):
    currency = await CurrencyService(db).update_currency(currency_id, data)
    return CurrencyResponse.model_validate(currency)


@router.patch("/{currency_id}/status", response_model=CurrencyResponse)
async def update_currency_status(
    currency_id: uuid.UUID,
    data: CurrencyStatusUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """Change ``status`` and/or ``is_default``."""
    currency = await CurrencyService(db).update_status(currency_id, data.status, data.is_default)
    return CurrencyResponse.model_validate(currency)


@router.delete("/{currency_id}", response_model=MessageResponse)
async def delete_currency(currency_id: uuid.UUID, db: DB, current_user: CurrentUser):
    """Soft delete a currency; a deleted default hands the flag to the newest active one."""
    await CurrencyService(db).delete_currency(currency_id)
    return MessageResponse(message="Currency deleted successfully")
