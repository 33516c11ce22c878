from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.schemas.base import MessageResponse
from app.schemas.supplier import (
    SupplierCreate,
    SupplierUpdate,
    SupplierResponse,
    SupplierListResponse,
)
from app.services.supplier_service import SupplierService

router = APIRouter(tags=["Suppliers"])


@router.get("", response_model=SupplierListResponse)
async def list_suppliers(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """Get paginated list of suppliers."""
    skip = (page - 1) * size
    suppliers, total = await SupplierService(db, current_user.id).get_suppliers(
        search=search, skip=skip, limit=size
    )

    return SupplierListResponse(
        items=[SupplierResponse.model_validate(s) for s in suppliers],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    supplier = await SupplierService(db, current_user.id).get_supplier(supplier_id)
    return SupplierResponse.model_validate(supplier)


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    data: SupplierCreate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Create a supplier.

    Creates the vendor user account (user_type 2) and the supplier row in
    one transaction. The returned ``vendor_id`` is what purchases refer to.
    """
    supplier = await SupplierService(db, current_user.id).create_supplier(data)
    return SupplierResponse.model_validate(supplier)


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: uuid.UUID,
    data: SupplierUpdate,
    db: DB,
    current_user: CurrentUser,
):
    supplier = await SupplierService(db, current_user.id).update_supplier(supplier_id, data)
    return SupplierResponse.model_validate(supplier)


@router.delete("/{supplier_id}", response_model=MessageResponse)
async def delete_supplier(
    supplier_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Soft delete a supplier."""
    await SupplierService(db, current_user.id).delete_supplier(supplier_id)
    return MessageResponse(message="Supplier deleted successfully")
