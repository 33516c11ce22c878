"""Invoice Service.

Sales invoices, the payments received against them and the recurring
rollover that clones a recurring invoice into a new DRAFT invoice.

Rollover rules:
- clone is DRAFT, dated today, due today + RECURRING_DUE_DAYS
- clone gets a fresh INV number and points at its parent
- clone and parent both get next_recurring_date = today advanced by cadence x duration
- only the parent stays scheduled (clone has is_recurring=False)
- parent.last_rolled_on = today, so a second roll the same day is a no-op
"""
import uuid
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Dict, List, Tuple, Any

from sqlalchemy import select, and_, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.amounts import normalize_items, to_decimal
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.core.formatting import format_invoice
from app.core.recurrence import advance_date
from app.models.customer import Customer
from app.models.document_sequence import DocumentType
from app.models.invoice import Invoice, InvoicePayment, InvoiceStatus
from app.schemas.invoice import InvoiceCreate, InvoiceUpdate, InvoicePaymentCreate
from app.services.document_sequence_service import DocumentSequenceService
from app.services.document_service import (
    DocumentReferences, SALES_SIGN_TYPES, INVOICE_TOTALS,
    document_totals, assign_totals, totals_touched,
)
from app.services.query import LIKE_ESCAPE, paginate, like


logger = logging.getLogger(__name__)


# Fields copied verbatim from a recurring parent to its clone
CLONED_FIELDS = (
    "customer_id", "reference_no", "items", "payment_method",
    "taxable_amount", "vat", "total_discount", "total_amount", "round_off",
    "bank_id", "notes", "terms_and_condition",
    "sign_type", "signature_id", "signature_name", "signature_image",
    "bill_from", "bill_to", "user_id",
)


def payment_status(total: Decimal, paid: Decimal, current: str) -> str:
    """Status implied by the paid amount."""
    if paid >= total and total > 0:
        return InvoiceStatus.PAID.value
    if paid > 0:
        return InvoiceStatus.PARTIALLY_PAID.value
    return current


async def roll_recurring_invoice(
    db: AsyncSession,
    parent: Invoice,
    today: date,
) -> Tuple[Optional[Invoice], Optional[str]]:
    """
    Clone ``parent`` for ``today``.

    The caller holds the parent row lock. Returns (child, None) when an
    invoice was created, or (None, reason) when the roll was skipped.
    """
    if not parent.is_recurring or not parent.recurring:
        raise BusinessRuleError("Invoice is not recurring")

    if parent.last_rolled_on == today:
        return None, "already rolled today"

    existing = await db.execute(
        select(Invoice.id).where(
            Invoice.parent_invoice_id == parent.id,
            Invoice.invoice_date == today,
            Invoice.is_deleted == False,  # noqa: E712
        ).limit(1)
    )
    if existing.scalar_one_or_none() is not None:
        return None, "child invoice for today already exists"

    child = Invoice(**{name: getattr(parent, name) for name in CLONED_FIELDS})
    child.items = [dict(item) for item in (parent.items or [])]
    child.invoice_number = await DocumentSequenceService(db).get_next_number(DocumentType.INVOICE.value)
    child.invoice_date = today
    child.due_date = today + timedelta(days=settings.RECURRING_DUE_DAYS)
    child.status = InvoiceStatus.DRAFT.value
    child.paid_amount = Decimal("0")
    child.balance_amount = to_decimal(parent.total_amount)
    next_date = advance_date(today, parent.recurring, parent.recurring_duration or 1)

    # Only the parent is scheduled; the clone records the cadence it was cut on
    child.is_recurring = False
    child.recurring = parent.recurring
    child.recurring_duration = parent.recurring_duration
    child.next_recurring_date = next_date
    child.parent_invoice_id = parent.id
    child.is_deleted = False
    db.add(child)

    parent.next_recurring_date = next_date
    parent.last_rolled_on = today
    await db.flush()

    logger.info(
        f"Rolled recurring invoice {parent.invoice_number} -> {child.invoice_number}, "
        f"next on {parent.next_recurring_date}"
    )
    return child, None


class InvoiceService:
    """Service for invoices owned by one user."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id
        self.refs = DocumentReferences(db, user_id)

    # ==================== QUERIES ====================

    def _owned(self):
        return select(Invoice).where(Invoice.user_id == self.user_id)

    async def get_invoices(
        self,
        status: Optional[str] = None,
        customer_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
        recurring_only: bool = False,
    ) -> Tuple[List[Invoice], int]:
        stmt = self._owned().where(Invoice.is_deleted == False)  # noqa: E712

        if recurring_only:
            stmt = stmt.where(Invoice.is_recurring == True)  # noqa: E712
        if status:
            stmt = stmt.where(Invoice.status == status)
        if customer_id:
            stmt = stmt.where(Invoice.customer_id == customer_id)
        if start_date:
            stmt = stmt.where(Invoice.invoice_date >= start_date)
        if end_date:
            stmt = stmt.where(Invoice.invoice_date <= end_date)
        if search:
            pattern = like(search)
            customer_ids = select(Customer.id).where(
                Customer.user_id == self.user_id,
                Customer.name.ilike(pattern, escape=LIKE_ESCAPE),
            )
            stmt = stmt.where(
                or_(
                    Invoice.invoice_number.ilike(pattern, escape=LIKE_ESCAPE),
                    Invoice.reference_no.ilike(pattern, escape=LIKE_ESCAPE),
                    Invoice.customer_id.in_(customer_ids),
                )
            )

        stmt = stmt.order_by(Invoice.invoice_date.desc(), Invoice.created_at.desc())
        return await paginate(self.db, stmt, skip, limit)

    async def get_invoice(self, invoice_id: uuid.UUID) -> Invoice:
        """Fetch by id; soft-deleted invoices are returned too."""
        result = await self.db.execute(self._owned().where(Invoice.id == invoice_id))
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    async def _get_live(self, invoice_id: uuid.UUID, for_update: bool = False) -> Invoice:
        stmt = self._owned().where(Invoice.id == invoice_id, Invoice.is_deleted == False)  # noqa: E712
        if for_update:
            stmt = stmt.with_for_update()
        invoice = (await self.db.execute(stmt)).scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    async def get_children(
        self,
        parent_id: uuid.UUID,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Invoice], int]:
        await self.get_invoice(parent_id)
        stmt = (
            self._owned()
            .where(Invoice.parent_invoice_id == parent_id, Invoice.is_deleted == False)  # noqa: E712
            .order_by(Invoice.invoice_date.desc())
        )
        return await paginate(self.db, stmt, skip, limit)

    # ==================== FORMATTING ====================

    async def format_invoices(self, invoices: List[Invoice]) -> List[Dict[str, Any]]:
        """Formatted projections, loading related rows in bulk."""
        customers, banks, signatures = await self.refs.related(invoices, Customer, "customer_id")

        return [
            format_invoice(
                invoice,
                customer=customers.get(invoice.customer_id),
                bank=banks.get(invoice.bank_id),
                signature=signatures.get(invoice.signature_id),
            )
            for invoice in invoices
        ]

    async def get_formatted_invoice(self, invoice_id: uuid.UUID) -> Dict[str, Any]:
        invoice = await self.get_invoice(invoice_id)
        return (await self.format_invoices([invoice]))[0]

    # ==================== MUTATIONS ====================

    async def create_invoice(
        self,
        data: InvoiceCreate,
        signature_image: Optional[str] = None
    ) -> Tuple[Invoice, List[str]]:
        """
        Create a DRAFT invoice.

        Returns (invoice, stale_files); stale files are uploads that ended
        up unused and can be removed once the request succeeds.
        """
        customer = await self.refs.customer(data.customer_id)
        await self.refs.bank(data.bank_id)
        await self.refs.check_items(data.items)
        if data.bill_from:
            await self.refs.user(data.bill_from)

        items = normalize_items(data.items)
        totals = document_totals(items, data.model_dump(), INVOICE_TOTALS, data.round_off)

        invoice = Invoice(
            customer_id=customer.id,
            invoice_date=data.invoice_date,
            due_date=data.due_date,
            reference_no=data.reference_no,
            items=items,
            status=InvoiceStatus.DRAFT.value,
            payment_method=data.payment_method,
            round_off=data.round_off,
            paid_amount=Decimal("0"),
            balance_amount=totals.total_amount,
            bank_id=data.bank_id,
            notes=data.notes,
            terms_and_condition=data.terms_and_condition,
            is_recurring=data.is_recurring,
            recurring=data.recurring.value if data.is_recurring else None,
            recurring_duration=data.recurring_duration if data.is_recurring else 0,
            next_recurring_date=(
                advance_date(data.invoice_date, data.recurring.value, data.recurring_duration)
                if data.is_recurring else None
            ),
            bill_from=data.bill_from or self.user_id,
            bill_to=customer.id,
            user_id=self.user_id,
            is_deleted=False,
        )
        assign_totals(invoice, totals, INVOICE_TOTALS)
        stale = await self.refs.apply_signature(
            invoice, SALES_SIGN_TYPES,
            data.sign_type, data.signature_id, data.signature_name, signature_image,
        )

        invoice.invoice_number = await DocumentSequenceService(self.db).get_next_number(
            DocumentType.INVOICE.value
        )
        self.db.add(invoice)
        await self.db.flush()
        await self.db.refresh(invoice)

        logger.info(f"Created invoice {invoice.invoice_number} for customer {customer.id}")
        return invoice, stale

    async def update_invoice(
        self,
        invoice_id: uuid.UUID,
        data: InvoiceUpdate,
        signature_image: Optional[str] = None
    ) -> Tuple[Invoice, List[str]]:
        invoice = await self._get_live(invoice_id, for_update=True)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("customer_id"):
            await self.refs.customer(update_data["customer_id"])
            invoice.bill_to = update_data["customer_id"]
        if "bank_id" in update_data:
            await self.refs.bank(update_data["bank_id"])
        if data.items is not None:
            await self.refs.check_items(data.items)
            update_data["items"] = normalize_items(data.items)

        invoice_date = update_data.get("invoice_date") or invoice.invoice_date
        due_date = update_data.get("due_date") or invoice.due_date
        if due_date < invoice_date:
            raise BusinessRuleError("due_date cannot be before invoice_date")

        recalc = totals_touched(update_data, INVOICE_TOTALS)
        recurring_changed = any(
            key in update_data for key in ("is_recurring", "recurring", "recurring_duration", "invoice_date")
        )

        sign_keys = ("sign_type", "signature_id", "signature_name")
        sign_args = {key: update_data.pop(key, None) for key in sign_keys}
        overrides = {key: update_data.pop(key, None) for key in ("taxable_amount", "vat", "total_discount", "total_amount")}
        if "status" in update_data and update_data["status"] is not None:
            update_data["status"] = InvoiceStatus(update_data["status"]).value
        if update_data.get("recurring") is not None:
            update_data["recurring"] = update_data["recurring"].value

        for field, value in update_data.items():
            setattr(invoice, field, value)

        if recalc:
            totals = document_totals(invoice.items, overrides, INVOICE_TOTALS, invoice.round_off)
            if totals.total_amount < to_decimal(invoice.paid_amount):
                raise BusinessRuleError("Invoice total cannot be less than the amount already paid")
            assign_totals(invoice, totals, INVOICE_TOTALS)
            invoice.balance_amount = totals.total_amount - to_decimal(invoice.paid_amount)

        if recurring_changed:
            self._reschedule(invoice)

        stale = []
        if any(value is not None for value in sign_args.values()) or signature_image:
            stale = await self.refs.apply_signature(
                invoice, SALES_SIGN_TYPES,
                sign_args["sign_type"], sign_args["signature_id"], sign_args["signature_name"],
                signature_image,
            )

        await self.db.flush()
        await self.db.refresh(invoice)
        return invoice, stale

    @staticmethod
    def _reschedule(invoice: Invoice) -> None:
        if not invoice.is_recurring:
            invoice.next_recurring_date = None
            return
        if not invoice.recurring or not invoice.recurring_duration:
            raise BusinessRuleError("recurring and recurring_duration are required when is_recurring is true")
        invoice.next_recurring_date = advance_date(
            invoice.invoice_date, invoice.recurring, invoice.recurring_duration
        )

    async def delete_invoice(self, invoice_id: uuid.UUID) -> Invoice:
        invoice = await self._get_live(invoice_id)
        invoice.is_deleted = True
        await self.db.flush()
        logger.info(f"Soft-deleted invoice {invoice.invoice_number}")
        return invoice

    # ==================== PAYMENTS ====================

    async def add_payment(
        self,
        invoice_id: uuid.UUID,
        data: InvoicePaymentCreate,
        received_by: uuid.UUID
    ) -> Tuple[InvoicePayment, Invoice]:
        invoice = await self._get_live(invoice_id, for_update=True)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise BusinessRuleError("Cannot record a payment on a cancelled invoice")

        total = to_decimal(invoice.total_amount)
        paid = to_decimal(invoice.paid_amount)
        if paid + data.amount > total:
            raise BusinessRuleError(
                f"Payment of {data.amount} exceeds the outstanding balance of {total - paid}"
            )

        payment = InvoicePayment(
            invoice_id=invoice.id,
            amount=data.amount,
            payment_method=data.payment_method,
            received_on=data.received_on or date.today(),
            notes=data.notes,
            received_by=received_by,
        )
        self.db.add(payment)

        invoice.paid_amount = paid + data.amount
        invoice.balance_amount = total - invoice.paid_amount
        invoice.status = payment_status(total, invoice.paid_amount, invoice.status)

        await self.db.flush()
        await self.db.refresh(payment)
        await self.db.refresh(invoice)
        logger.info(f"Payment {data.amount} recorded on {invoice.invoice_number} ({invoice.status})")
        return payment, invoice

    async def get_payments(self, invoice_id: uuid.UUID) -> List[InvoicePayment]:
        await self.get_invoice(invoice_id)
        result = await self.db.execute(
            select(InvoicePayment)
            .where(InvoicePayment.invoice_id == invoice_id)
            .order_by(InvoicePayment.received_on, InvoicePayment.created_at)
        )
        return list(result.scalars().all())

    # ==================== RECURRING ====================

    async def roll_now(self, parent_id: uuid.UUID, today: Optional[date] = None) -> Dict[str, Any]:
        """Manual rollover of one recurring invoice for today."""
        today = today or date.today()
        result = await self.db.execute(
            self._owned().where(
                and_(Invoice.id == parent_id, Invoice.is_deleted == False)  # noqa: E712
            ).with_for_update()
        )
        parent = result.scalar_one_or_none()
        if parent is None:
            raise NotFoundError("Parent invoice not found")
        if not parent.is_recurring:
            raise BusinessRuleError("Invoice is not recurring")

        child, reason = await roll_recurring_invoice(self.db, parent, today)
        if child is not None:
            await self.db.refresh(child)
        return {
            "created": child is not None,
            "reason": reason,
            "invoice": child,
            "next_recurring_date": parent.next_recurring_date,
        }

    async def count_children(self, parent_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        if not parent_ids:
            return {}
        result = await self.db.execute(
            select(Invoice.parent_invoice_id, func.count())
            .where(Invoice.parent_invoice_id.in_(parent_ids), Invoice.is_deleted == False)  # noqa: E712
            .group_by(Invoice.parent_invoice_id)
        )
        return {row[0]: row[1] for row in result.all()}
