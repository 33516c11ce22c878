from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.models.supplier import Supplier
from app.models.user import User, UserType
from app.schemas.supplier import SupplierCreate, SupplierUpdate
from app.services.currency_service import CurrencyService
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)


class SupplierService:
    """
    Suppliers.

    Every supplier is backed by a password-less User with user_type=2; that
    user's id is the ``vendor_id`` purchases and purchase orders refer to.
    """

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    async def _email_taken(self, email: str, exclude_user_id: Optional[uuid.UUID] = None) -> bool:
        stmt = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_user_id:
            stmt = stmt.where(User.id != exclude_user_id)
        return (await self.db.execute(stmt.limit(1))).scalar_one_or_none() is not None

    async def get_suppliers(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Supplier], int]:
        stmt = select(Supplier).where(
            Supplier.user_id == self.user_id,
            Supplier.is_deleted == False,  # noqa: E712
        )
        if search:
            pattern = like(search)
            stmt = stmt.where(
                or_(
                    Supplier.supplier_name.ilike(pattern, escape=LIKE_ESCAPE),
                    Supplier.supplier_email.ilike(pattern, escape=LIKE_ESCAPE),
                    Supplier.supplier_phone.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        return await paginate(self.db, stmt.order_by(Supplier.created_at.desc()), skip, limit)

    async def get_supplier(self, supplier_id: uuid.UUID) -> Supplier:
        result = await self.db.execute(
            select(Supplier).where(Supplier.id == supplier_id, Supplier.user_id == self.user_id)
        )
        supplier = result.scalar_one_or_none()
        if supplier is None:
            raise NotFoundError("Supplier not found")
        return supplier

    async def create_supplier(self, data: SupplierCreate) -> Supplier:
        """Create the vendor user and the supplier row together."""
        if await self._email_taken(data.supplier_email):
            raise ConflictError(f"A supplier or user with email '{data.supplier_email}' already exists")

        first_name, _, last_name = data.supplier_name.partition(" ")
        default_currency = await CurrencyService(self.db).get_default()
        vendor = User(
            email=data.supplier_email.lower(),
            phone=data.supplier_phone,
            first_name=first_name,
            last_name=last_name or None,
            password_hash=None,
            user_type=UserType.SUPPLIER.value,
            balance=data.balance,
            balance_type=data.balance_type,
            default_currency_id=default_currency.id if default_currency else None,
            is_active=True,
        )
        self.db.add(vendor)
        await self.db.flush()

        supplier = Supplier(
            vendor_id=vendor.id,
            supplier_name=data.supplier_name,
            supplier_email=data.supplier_email.lower(),
            supplier_phone=data.supplier_phone,
            balance=data.balance,
            balance_type=data.balance_type,
            user_id=self.user_id,
        )
        self.db.add(supplier)
        await self.db.flush()
        await self.db.refresh(supplier)
        logger.info(f"Created supplier {supplier.supplier_name} (vendor user {vendor.id})")
        return supplier

    async def update_supplier(self, supplier_id: uuid.UUID, data: SupplierUpdate) -> Supplier:
        supplier = await self.get_supplier(supplier_id)
        if supplier.is_deleted:
            raise NotFoundError("Supplier not found")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("supplier_email"):
            update_data["supplier_email"] = update_data["supplier_email"].lower()
            if await self._email_taken(update_data["supplier_email"], exclude_user_id=supplier.vendor_id):
                raise ConflictError(f"A supplier or user with email '{update_data['supplier_email']}' already exists")

        for field, value in update_data.items():
            setattr(supplier, field, value)

        # Keep the vendor user in step with the supplier card
        vendor = await self.db.get(User, supplier.vendor_id)
        if vendor is not None:
            if "supplier_email" in update_data:
                vendor.email = update_data["supplier_email"]
            if "supplier_phone" in update_data:
                vendor.phone = update_data["supplier_phone"]
            if "supplier_name" in update_data:
                first_name, _, last_name = update_data["supplier_name"].partition(" ")
                vendor.first_name = first_name
                vendor.last_name = last_name or None
            if "balance" in update_data:
                vendor.balance = update_data["balance"]
            if "balance_type" in update_data:
                vendor.balance_type = update_data["balance_type"]

        await self.db.flush()
        await self.db.refresh(supplier)
        return supplier

    async def delete_supplier(self, supplier_id: uuid.UUID) -> Supplier:
        supplier = await self.get_supplier(supplier_id)
        if supplier.is_deleted:
            raise NotFoundError("Supplier not found")
        supplier.is_deleted = True
        supplier.status = False
        await self.db.flush()
        return supplier
