"""Inventory API endpoints for stock management."""
from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.models.inventory import Inventory
from app.models.product import Product
from app.schemas.inventory import (
    StockMovementRequest,
    InventoryHistoryResponse,
    InventoryProductBrief,
    InventoryResponse,
    InventoryDetailResponse,
    InventoryListResponse,
    InventoryVerifyResponse,
)
from app.services.inventory_service import InventoryService


router = APIRouter(tags=["Inventory"])


def _inventory_response(inventory: Inventory, product: Product) -> InventoryResponse:
    return InventoryResponse(
        id=inventory.id,
        product_id=inventory.product_id,
        quantity=inventory.quantity,
        product=InventoryProductBrief(
            id=product.id,
            name=product.name,
            code=product.code,
            alert_quantity=product.alert_quantity or 0,
        ),
        updated_at=inventory.updated_at,
    )


@router.get("", response_model=InventoryListResponse)
async def list_inventory(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search by product name or code"),
):
    """
    Get paginated stock levels with product info.
    """
    service = InventoryService(db, current_user.id)
    skip = (page - 1) * size

    rows, total = await service.get_inventories(search=search, skip=skip, limit=size)

    return InventoryListResponse(
        items=[_inventory_response(inventory, product) for inventory, product in rows],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.post("/stock-in", response_model=InventoryHistoryResponse, status_code=status.HTTP_201_CREATED)
async def stock_in(
    data: StockMovementRequest,
    db: DB,
    current_user: CurrentUser,
):
    """Add stock for a product by hand."""
    history = await InventoryService(db, current_user.id).stock_in(
        data.product_id, data.quantity, unit_id=data.unit_id, notes=data.notes
    )
    return InventoryHistoryResponse.model_validate(history)


@router.post("/stock-out", response_model=InventoryHistoryResponse, status_code=status.HTTP_201_CREATED)
async def stock_out(
    data: StockMovementRequest,
    db: DB,
    current_user: CurrentUser,
):
    """
    Remove stock for a product by hand.

    Refused with 400 when it would take the quantity below zero.
    """
    history = await InventoryService(db, current_user.id).stock_out(
        data.product_id, data.quantity, unit_id=data.unit_id, notes=data.notes
    )
    return InventoryHistoryResponse.model_validate(history)


@router.get("/{product_id}", response_model=InventoryDetailResponse)
async def get_inventory(
    product_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Stock level of one product with its movement history, newest first."""
    inventory, product, history = await InventoryService(db, current_user.id).get_inventory(product_id)
    summary = _inventory_response(inventory, product)
    return InventoryDetailResponse(
        **summary.model_dump(),
        history=[InventoryHistoryResponse.model_validate(h) for h in history],
    )


@router.get("/{product_id}/verify", response_model=InventoryVerifyResponse)
async def verify_inventory(
    product_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Check the stored quantity against the sum of the movement history."""
    result = await InventoryService(db, current_user.id).verify(product_id)
    return InventoryVerifyResponse(**result)
