from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.models.customer import Customer
from app.schemas.customer import CustomerCreate, CustomerUpdate
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)


class CustomerService:
    """Customers, scoped to the owning user."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    async def _ensure_email_free(self, email: str, exclude_id: Optional[uuid.UUID] = None) -> None:
        stmt = select(Customer.id).where(
            Customer.user_id == self.user_id,
            Customer.is_deleted == False,  # noqa: E712
            func.lower(Customer.email) == email.lower(),
        )
        if exclude_id:
            stmt = stmt.where(Customer.id != exclude_id)
        if (await self.db.execute(stmt.limit(1))).scalar_one_or_none():
            raise ConflictError(f"A customer with email '{email}' already exists")

    async def get_customers(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Customer], int]:
        stmt = select(Customer).where(
            Customer.user_id == self.user_id,
            Customer.is_deleted == False,  # noqa: E712
        )
        if status:
            stmt = stmt.where(Customer.status == status)
        if search:
            pattern = like(search)
            stmt = stmt.where(
                or_(
                    Customer.name.ilike(pattern, escape=LIKE_ESCAPE),
                    Customer.email.ilike(pattern, escape=LIKE_ESCAPE),
                    Customer.phone.ilike(pattern, escape=LIKE_ESCAPE),
                    Customer.billing_address["city"].as_string().ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        return await paginate(self.db, stmt.order_by(Customer.created_at.desc()), skip, limit)

    async def get_customer(self, customer_id: uuid.UUID) -> Customer:
        """Fetch by id; soft-deleted customers are still returned."""
        result = await self.db.execute(
            select(Customer).where(Customer.id == customer_id, Customer.user_id == self.user_id)
        )
        customer = result.scalar_one_or_none()
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    async def create_customer(self, data: CustomerCreate, image: Optional[str] = None) -> Customer:
        await self._ensure_email_free(data.email)

        customer = Customer(
            **data.model_dump(mode="json"),
            image=image,
            user_id=self.user_id,
        )
        self.db.add(customer)
        await self.db.flush()
        await self.db.refresh(customer)
        logger.info(f"Created customer {customer.id} for user {self.user_id}")
        return customer

    async def update_customer(
        self,
        customer_id: uuid.UUID,
        data: CustomerUpdate,
        image: Optional[str] = None
    ) -> Tuple[Customer, Optional[str]]:
        """Returns (customer, replaced_image_path)."""
        customer = await self.get_customer(customer_id)
        if customer.is_deleted:
            raise NotFoundError("Customer not found")

        update_data = data.model_dump(exclude_unset=True, exclude={"image_removed"}, mode="json")
        if update_data.get("email"):
            await self._ensure_email_free(update_data["email"], exclude_id=customer.id)

        for field, value in update_data.items():
            setattr(customer, field, value)

        replaced = None
        if image or data.image_removed:
            replaced = customer.image
            customer.image = image

        await self.db.flush()
        await self.db.refresh(customer)
        return customer, replaced

    async def delete_customer(self, customer_id: uuid.UUID) -> Customer:
        customer = await self.get_customer(customer_id)
        if customer.is_deleted:
            raise NotFoundError("Customer not found")
        customer.is_deleted = True
        await self.db.flush()
        return customer
