from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.schemas.base import MessageResponse
from app.schemas.bank_detail import (
    BankDetailCreate,
    BankDetailUpdate,
    BankDetailResponse,
    BankDetailListResponse,
    StatusUpdate,
)
from app.services.bank_detail_service import BankDetailService

router = APIRouter(tags=["Bank Details"])


@router.get("", response_model=BankDetailListResponse)
async def list_bank_details(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """Get paginated list of the current user's bank accounts."""
    skip = (page - 1) * size
    banks, total = await BankDetailService(db, current_user.id).get_bank_details(
        search=search, skip=skip, limit=size
    )

    return BankDetailListResponse(
        items=[BankDetailResponse.model_validate(b) for b in banks],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{bank_id}", response_model=BankDetailResponse)
async def get_bank_detail(bank_id: uuid.UUID, db: DB, current_user: CurrentUser):
    bank = await BankDetailService(db, current_user.id).get_bank_detail(bank_id)
    return BankDetailResponse.model_validate(bank)


@router.post("", response_model=BankDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_bank_detail(data: BankDetailCreate, db: DB, current_user: CurrentUser):
    bank = await BankDetailService(db, current_user.id).create_bank_detail(data)
    return BankDetailResponse.model_validate(bank)


@router.put("/{bank_id}", response_model=BankDetailResponse)
async def update_bank_detail(
    bank_id: uuid.UUID,
    data: BankDetailUpdate,
    db: DB,
    current_user: CurrentUser,
):
    bank = await BankDetailService(db, current_user.id).update_bank_detail(bank_id, data)
    return BankDetailResponse.model_validate(bank)


@router.patch("/status/{bank_id}", response_model=BankDetailResponse)
async def update_bank_status(
    bank_id: uuid.UUID,
    data: StatusUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """Activate or deactivate a bank account."""
    bank = await BankDetailService(db, current_user.id).set_status(bank_id, data.status)
    return BankDetailResponse.model_validate(bank)


@router.delete("/{bank_id}", response_model=MessageResponse)
async def delete_bank_detail(bank_id: uuid.UUID, db: DB, current_user: CurrentUser):
    """Soft delete a bank account."""
    await BankDetailService(db, current_user.id).delete_bank_detail(bank_id)
    return MessageResponse(message="Bank detail deleted successfully")
