from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.schemas.base import MessageResponse
from app.schemas.unit import UnitCreate, UnitUpdate, UnitResponse, UnitListResponse
from app.services.product_service import ProductService

router = APIRouter(tags=["Units"])


@router.get("", response_model=UnitListResponse)
async def list_units(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """Get paginated list of units."""
    skip = (page - 1) * size
    units, total = await ProductService(db).get_units(search=search, skip=skip, limit=size)

    return UnitListResponse(
        items=[UnitResponse.model_validate(u) for u in units],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{unit_id}", response_model=UnitResponse)
async def get_unit(unit_id: uuid.UUID, db: DB, current_user: CurrentUser):
    unit = await ProductService(db).get_unit(unit_id)
    return UnitResponse.model_validate(unit)


@router.post("", response_model=UnitResponse, status_code=status.HTTP_201_CREATED)
async def create_unit(data: UnitCreate, db: DB, current_user: CurrentUser):
    unit = await ProductService(db).create_unit(data, current_user.id)
    return UnitResponse.model_validate(unit)


@router.put("/{unit_id}", response_model=UnitResponse)
async def update_unit(unit_id: uuid.UUID, data: UnitUpdate, db: DB, current_user: CurrentUser):
    unit = await ProductService(db).update_unit(unit_id, data)
    return UnitResponse.model_validate(unit)


@router.delete("/{unit_id}", response_model=MessageResponse)
async def delete_unit(unit_id: uuid.UUID, db: DB, current_user: CurrentUser):
    """Delete a unit that no product uses."""
    await ProductService(db).delete_unit(unit_id)
    return MessageResponse(message="Unit deleted successfully")
