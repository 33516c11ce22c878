"""
Supplier Payment Service

Payments against purchases. Every payment moves the purchase's
paid_amount / balance_amount and status:

    paid == 0            -> pending
    0 < paid < total     -> partially_paid
    paid == total        -> paid
"""
import uuid
import logging
from datetime import date
from typing import Optional, List, Tuple

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.amounts import to_decimal
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.models.document_sequence import DocumentType
from app.models.purchase import Purchase, PurchaseStatus
from app.models.supplier_payment import SupplierPayment
from app.schemas.payment import SupplierPaymentCreate, SupplierPaymentUpdate
from app.services.document_sequence_service import DocumentSequenceService
from app.services.purchase_service import PurchaseService, purchase_status
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)


class SupplierPaymentService:
    """Service for supplier payments recorded by one owner."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id
        self.purchases = PurchaseService(db, user_id)

    async def get_payments(
        self,
        supplier_id: Optional[uuid.UUID] = None,
        purchase_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[SupplierPayment], int]:
        stmt = select(SupplierPayment).where(
            SupplierPayment.created_by == self.user_id,
            SupplierPayment.is_deleted == False,  # noqa: E712
        )
        if supplier_id:
            stmt = stmt.where(SupplierPayment.supplier_id == supplier_id)
        if purchase_id:
            stmt = stmt.where(SupplierPayment.purchase_id == purchase_id)
        if start_date:
            stmt = stmt.where(SupplierPayment.payment_date >= start_date)
        if end_date:
            stmt = stmt.where(SupplierPayment.payment_date <= end_date)
        if search:
            pattern = like(search)
            stmt = stmt.where(
                or_(
                    SupplierPayment.payment_number.ilike(pattern, escape=LIKE_ESCAPE),
                    SupplierPayment.reference_number.ilike(pattern, escape=LIKE_ESCAPE),
                    SupplierPayment.notes.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        stmt = stmt.order_by(SupplierPayment.created_at.desc())
        return await paginate(self.db, stmt, skip, limit)

    async def get_payment(self, payment_id: uuid.UUID) -> SupplierPayment:
        result = await self.db.execute(
            select(SupplierPayment).where(
                SupplierPayment.id == payment_id,
                SupplierPayment.created_by == self.user_id,
            )
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundError("Supplier payment not found")
        return payment

    async def create_payment(
        self,
        data: SupplierPaymentCreate,
        attachment: Optional[str] = None
    ) -> Tuple[SupplierPayment, Purchase]:
        """Record a payment and apply it to the purchase."""
        purchase = await self.purchases.get_live_purchase(data.purchase_id)
        if purchase.status == PurchaseStatus.CANCELLED.value:
            raise BusinessRuleError("Cannot pay a cancelled purchase")

        total = to_decimal(purchase.total_amount)
        paid = to_decimal(purchase.paid_amount)
        balance = total - paid
        if data.amount > balance:
            raise BusinessRuleError(
                f"Payment amount {data.amount} exceeds the purchase balance of {balance}"
            )

        paid += data.amount
        purchase.paid_amount = paid
        purchase.balance_amount = total - paid
        purchase.status = purchase_status(total, paid)

        payment = SupplierPayment(
            purchase_id=purchase.id,
            supplier_id=purchase.vendor_id,
            reference_number=data.reference_number,
            payment_date=data.payment_date,
            payment_mode=data.payment_mode.value,
            amount=data.amount,
            paid_amount=paid,
            due_amount=total - paid,
            notes=data.notes,
            attachment=attachment,
            status=data.status.value,
            created_by=self.user_id,
            is_deleted=False,
        )
        payment.payment_number = await DocumentSequenceService(self.db).get_next_number(
            DocumentType.SUPPLIER_PAYMENT.value
        )
        self.db.add(payment)
        await self.db.flush()
        await self.db.refresh(payment)
        await self.db.refresh(purchase)

        logger.info(
            f"Supplier payment {payment.payment_number} of {data.amount} on "
            f"{purchase.purchase_number} -> {purchase.status}"
        )
        return payment, purchase

    async def update_payment(
        self,
        payment_id: uuid.UUID,
        data: SupplierPaymentUpdate,
        attachment: Optional[str] = None
    ) -> Tuple[SupplierPayment, Optional[str]]:
        """Edit descriptive fields; the amount is fixed once recorded."""
        payment = await self.get_payment(payment_id)
        if payment.is_deleted:
            raise NotFoundError("Supplier payment not found")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("payment_mode") is not None:
            update_data["payment_mode"] = update_data["payment_mode"].value
        for field, value in update_data.items():
            setattr(payment, field, value)

        replaced = None
        if attachment:
            replaced = payment.attachment
            payment.attachment = attachment

        await self.db.flush()
        await self.db.refresh(payment)
        return payment, replaced

    async def delete_payment(self, payment_id: uuid.UUID) -> Tuple[SupplierPayment, Purchase]:
        """Soft-delete a payment and take it back off the purchase."""
        payment = await self.get_payment(payment_id)
        if payment.is_deleted:
            raise NotFoundError("Supplier payment not found")

        purchase = (await self.db.execute(
            select(Purchase).where(Purchase.id == payment.purchase_id).with_for_update()
        )).scalar_one()

        total = to_decimal(purchase.total_amount)
        paid = max(to_decimal(purchase.paid_amount) - to_decimal(payment.amount), to_decimal(0))
        purchase.paid_amount = paid
        purchase.balance_amount = total - paid
        if purchase.status != PurchaseStatus.CANCELLED.value:
            purchase.status = purchase_status(total, paid)

        payment.is_deleted = True
        await self.db.flush()
        await self.db.refresh(purchase)
        logger.info(f"Reversed supplier payment {payment.payment_number}; {purchase.purchase_number} -> {purchase.status}")
        return payment, purchase
