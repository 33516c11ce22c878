from typing import Optional, Literal
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.schemas.base import MessageResponse
from app.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
)
from app.services.customer_service import CustomerService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Customers"])


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[Literal["Active", "Inactive"]] = Query(None),
    search: Optional[str] = Query(None, description="Search by name, email, phone or billing city"),
):
    """
    Get paginated list of customers.
    """
    service = CustomerService(db, current_user.id)
    skip = (page - 1) * size

    customers, total = await service.get_customers(
        search=search,
        status=status,
        skip=skip,
        limit=size,
    )

    return CustomerListResponse(
        items=[CustomerResponse.model_validate(c) for c in customers],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get a customer by ID, including deleted ones."""
    customer = await CustomerService(db, current_user.id).get_customer(customer_id)
    return CustomerResponse.model_validate(customer)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: CustomerCreate = Depends(form_payload(CustomerCreate)),
    image: Optional[UploadFile] = File(None),
):
    """
    Create a new customer.

    Email addresses are unique per owner (409 otherwise).
    """
    image_path = await tracker.save_image(image, UploadCategory.CUSTOMERS)
    customer = await CustomerService(db, current_user.id).create_customer(data, image_path)
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: CustomerUpdate = Depends(form_payload(CustomerUpdate)),
    image: Optional[UploadFile] = File(None),
):
    """
    Update a customer.

    Send ``image_removed: true`` to drop the stored image without a replacement.
    """
    image_path = await tracker.save_image(image, UploadCategory.CUSTOMERS)
    customer, replaced = await CustomerService(db, current_user.id).update_customer(
        customer_id, data, image_path
    )
    tracker.supersede(replaced)
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", response_model=MessageResponse)
async def delete_customer(
    customer_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Soft delete a customer."""
    await CustomerService(db, current_user.id).delete_customer(customer_id)
    return MessageResponse(message="Customer deleted successfully")
