from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.models.tax import TaxGroup
from app.schemas.base import MessageResponse
from app.schemas.tax import (
    TaxRateCreate,
    TaxRateUpdate,
    TaxRateResponse,
    TaxRateListResponse,
    TaxGroupCreate,
    TaxGroupUpdate,
    TaxGroupResponse,
    TaxGroupListResponse,
)
from app.services.product_service import ProductService

router = APIRouter(tags=["Taxes"])


async def _group_response(service: ProductService, group: TaxGroup) -> TaxGroupResponse:
    response = TaxGroupResponse.model_validate(group)
    response.total_rate = await service.group_total_rate(group)
    return response


# ==================== TAX RATES ====================

@router.get("/tax-rates", response_model=TaxRateListResponse)
async def list_tax_rates(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """Get paginated list of tax rates."""
    skip = (page - 1) * size
    rates, total = await ProductService(db).get_tax_rates(search=search, skip=skip, limit=size)

    return TaxRateListResponse(
        items=[TaxRateResponse.model_validate(r) for r in rates],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/tax-rates/{tax_id}", response_model=TaxRateResponse)
async def get_tax_rate(tax_id: uuid.UUID, db: DB, current_user: CurrentUser):
    tax = await ProductService(db).get_tax_rate(tax_id)
    return TaxRateResponse.model_validate(tax)


@router.post("/tax-rates", response_model=TaxRateResponse, status_code=status.HTTP_201_CREATED)
async def create_tax_rate(data: TaxRateCreate, db: DB, current_user: CurrentUser):
    """Create a tax rate (percentage between 0 and 100)."""
    tax = await ProductService(db).create_tax_rate(data, current_user.id)
    return TaxRateResponse.model_validate(tax)


@router.put("/tax-rates/{tax_id}", response_model=TaxRateResponse)
async def update_tax_rate(tax_id: uuid.UUID, data: TaxRateUpdate, db: DB, current_user: CurrentUser):
    tax = await ProductService(db).update_tax_rate(tax_id, data)
    return TaxRateResponse.model_validate(tax)


@router.delete("/tax-rates/{tax_id}", response_model=MessageResponse)
async def delete_tax_rate(tax_id: uuid.UUID, db: DB, current_user: CurrentUser):
    await ProductService(db).delete_tax_rate(tax_id)
    return MessageResponse(message="Tax rate deleted successfully")


# ==================== TAX GROUPS ====================

@router.get("/tax-groups", response_model=TaxGroupListResponse)
async def list_tax_groups(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """Get paginated list of tax groups with their combined rate."""
    service = ProductService(db)
    skip = (page - 1) * size
    groups, total = await service.get_tax_groups(search=search, skip=skip, limit=size)

    return TaxGroupListResponse(
        items=[await _group_response(service, g) for g in groups],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/tax-groups/{group_id}", response_model=TaxGroupResponse)
async def get_tax_group(group_id: uuid.UUID, db: DB, current_user: CurrentUser):
    service = ProductService(db)
    return await _group_response(service, await service.get_tax_group(group_id))


@router.post("/tax-groups", response_model=TaxGroupResponse, status_code=status.HTTP_201_CREATED)
async def create_tax_group(data: TaxGroupCreate, db: DB, current_user: CurrentUser):
    """
    Create a tax group.

    Every id in ``tax_rate_ids`` must name an existing tax rate (422 otherwise).
    """
    service = ProductService(db)
    group = await service.create_tax_group(data, current_user.id)
    return await _group_response(service, group)


@router.put("/tax-groups/{group_id}", response_model=TaxGroupResponse)
async def update_tax_group(group_id: uuid.UUID, data: TaxGroupUpdate, db: DB, current_user: CurrentUser):
    service = ProductService(db)
    group = await service.update_tax_group(group_id, data)
    return await _group_response(service, group)


@router.delete("/tax-groups/{group_id}", response_model=MessageResponse)
async def delete_tax_group(group_id: uuid.UUID, db: DB, current_user: CurrentUser):
    await ProductService(db).delete_tax_group(group_id)
    return MessageResponse(message="Tax group deleted successfully")
