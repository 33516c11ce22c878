"""Quotation Service: customer quotations and their conversion into invoices."""
import uuid
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, List, Tuple

from sqlalchemy import select, or_, String, cast
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.amounts import normalize_items
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.core.formatting import format_quotation
from app.models.customer import Customer
from app.models.document_sequence import DocumentType
from app.models.invoice import Invoice, InvoiceStatus
from app.models.quotation import Quotation, QuotationStatus
from app.schemas.quotation import QuotationCreate, QuotationUpdate, QuotationConvertRequest
from app.services.document_sequence_service import DocumentSequenceService
from app.services.document_service import (
    DocumentReferences, SALES_SIGN_TYPES, QUOTATION_TOTALS, INVOICE_TOTALS,
    document_totals, assign_totals, totals_touched,
)
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)


class QuotationService:
    """Quotations owned by one user."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id
        self.refs = DocumentReferences(db, user_id)

    def _owned(self):
        return select(Quotation).where(Quotation.user_id == self.user_id)

    async def get_quotations(
        self,
        status: Optional[str] = None,
        customer_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Quotation], int]:
        stmt = self._owned().where(Quotation.is_deleted == False)  # noqa: E712
        if status:
            stmt = stmt.where(Quotation.status == status)
        if customer_id:
            stmt = stmt.where(Quotation.customer_id == customer_id)
        if start_date:
            stmt = stmt.where(Quotation.quotation_date >= start_date)
        if end_date:
            stmt = stmt.where(Quotation.quotation_date <= end_date)
        if search:
            pattern = like(search)
            customer_ids = select(Customer.id).where(
                Customer.user_id == self.user_id,
                Customer.name.ilike(pattern, escape=LIKE_ESCAPE),
            )
            stmt = stmt.where(
                or_(
                    Quotation.quotation_number.ilike(pattern, escape=LIKE_ESCAPE),
                    Quotation.reference_no.ilike(pattern, escape=LIKE_ESCAPE),
                    # item names live inside the JSON array
                    cast(Quotation.items, String).ilike(pattern, escape=LIKE_ESCAPE),
                    Quotation.customer_id.in_(customer_ids),
                )
            )
        stmt = stmt.order_by(Quotation.quotation_date.desc(), Quotation.created_at.desc())
        return await paginate(self.db, stmt, skip, limit)

    async def get_quotation(self, quotation_id: uuid.UUID) -> Quotation:
        """Fetch by id; soft-deleted quotations are returned too."""
        result = await self.db.execute(self._owned().where(Quotation.id == quotation_id))
        quotation = result.scalar_one_or_none()
        if quotation is None:
            raise NotFoundError("Quotation not found")
        return quotation

    async def format_quotations(self, quotations: List[Quotation]) -> List[Dict[str, Any]]:
        customers, banks, signatures = await self.refs.related(quotations, Customer, "customer_id")
        return [
            format_quotation(
                quotation,
                customer=customers.get(quotation.customer_id),
                bank=banks.get(quotation.bank_id),
                signature=signatures.get(quotation.signature_id),
            )
            for quotation in quotations
        ]

    async def get_formatted_quotation(self, quotation_id: uuid.UUID) -> Dict[str, Any]:
        quotation = await self.get_quotation(quotation_id)
        return (await self.format_quotations([quotation]))[0]

    async def _get_live(self, quotation_id: uuid.UUID) -> Quotation:
        result = await self.db.execute(
            self._owned()
            .where(Quotation.id == quotation_id, Quotation.is_deleted == False)  # noqa: E712
            .with_for_update()
        )
        quotation = result.scalar_one_or_none()
        if quotation is None:
            raise NotFoundError("Quotation not found")
        return quotation

    async def create_quotation(
        self,
        data: QuotationCreate,
        signature_image: Optional[str] = None
    ) -> Tuple[Quotation, List[str]]:
        customer = await self.refs.customer(data.customer_id)
        await self.refs.bank(data.bank_id)
        await self.refs.check_items(data.items)
        if data.bill_from:
            await self.refs.user(data.bill_from)

        items = normalize_items(data.items)
        totals = document_totals(items, data.model_dump(), QUOTATION_TOTALS, data.round_off)

        quotation = Quotation(
            customer_id=customer.id,
            quotation_date=data.quotation_date,
            expiry_date=data.expiry_date,
            reference_no=data.reference_no,
            items=items,
            status=data.status.value,
            payment_terms=data.payment_terms,
            convert_type=data.convert_type,
            round_off=data.round_off,
            bank_id=data.bank_id,
            notes=data.notes,
            terms_and_condition=data.terms_and_condition,
            bill_from=data.bill_from or self.user_id,
            bill_to=customer.id,
            user_id=self.user_id,
            is_deleted=False,
        )
        assign_totals(quotation, totals, QUOTATION_TOTALS)
        stale = await self.refs.apply_signature(
            quotation, SALES_SIGN_TYPES,
            data.sign_type, data.signature_id, data.signature_name, signature_image,
        )

        quotation.quotation_number = await DocumentSequenceService(self.db).get_next_number(
            DocumentType.QUOTATION.value
        )
        self.db.add(quotation)
        await self.db.flush()
        await self.db.refresh(quotation)
        logger.info(f"Created quotation {quotation.quotation_number}")
        return quotation, stale

    async def update_quotation(
        self,
        quotation_id: uuid.UUID,
        data: QuotationUpdate,
        signature_image: Optional[str] = None
    ) -> Tuple[Quotation, List[str]]:
        quotation = await self._get_live(quotation_id)
        if quotation.status == QuotationStatus.CONVERTED.value:
            raise BusinessRuleError("A converted quotation cannot be modified")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("customer_id"):
            await self.refs.customer(update_data["customer_id"])
            quotation.bill_to = update_data["customer_id"]
        if "bank_id" in update_data:
            await self.refs.bank(update_data["bank_id"])
        if data.items is not None:
            await self.refs.check_items(data.items)
            update_data["items"] = normalize_items(data.items)

        recalc = totals_touched(update_data, QUOTATION_TOTALS)
        sign_args = {key: update_data.pop(key, None) for key in ("sign_type", "signature_id", "signature_name")}
        overrides = {key: update_data.pop(key, None) for key in ("sub_total", "total_discount", "total_tax", "grand_total")}
        if update_data.get("status") is not None:
            update_data["status"] = QuotationStatus(update_data["status"]).value

        for field, value in update_data.items():
            setattr(quotation, field, value)

        if quotation.expiry_date and quotation.expiry_date < quotation.quotation_date:
            raise BusinessRuleError("expiry_date cannot be before quotation_date")

        if recalc:
            totals = document_totals(quotation.items, overrides, QUOTATION_TOTALS, quotation.round_off)
            assign_totals(quotation, totals, QUOTATION_TOTALS)

        stale = []
        if any(value is not None for value in sign_args.values()) or signature_image:
            stale = await self.refs.apply_signature(
                quotation, SALES_SIGN_TYPES,
                sign_args["sign_type"], sign_args["signature_id"], sign_args["signature_name"],
                signature_image,
            )

        await self.db.flush()
        await self.db.refresh(quotation)
        return quotation, stale

    async def delete_quotation(self, quotation_id: uuid.UUID) -> Quotation:
        quotation = await self._get_live(quotation_id)
        quotation.is_deleted = True
        await self.db.flush()
        return quotation

    async def convert_to_invoice(
        self,
        quotation_id: uuid.UUID,
        data: Optional[QuotationConvertRequest] = None
    ) -> Tuple[Quotation, Invoice]:
        """
        Create a DRAFT invoice from the quotation.

        The quotation is marked converted in the same transaction.
        """
        data = data or QuotationConvertRequest()
        quotation = await self._get_live(quotation_id)
        if quotation.status == QuotationStatus.CONVERTED.value:
            raise BusinessRuleError("Quotation has already been converted")

        invoice_date = data.invoice_date or date.today()
        due_date = data.due_date or quotation.expiry_date or invoice_date
        if due_date < invoice_date:
            due_date = invoice_date

        items = [dict(item) for item in (quotation.items or [])]
        totals = document_totals(
            items,
            {
                "taxable_amount": quotation.sub_total,
                "total_discount": quotation.total_discount,
                "vat": quotation.total_tax,
                "total_amount": quotation.grand_total,
            },
            INVOICE_TOTALS,
        )

        invoice = Invoice(
            customer_id=quotation.customer_id,
            invoice_date=invoice_date,
            due_date=due_date,
            reference_no=quotation.reference_no or quotation.quotation_number,
            items=items,
            status=InvoiceStatus.DRAFT.value,
            payment_method=data.payment_method,
            round_off=quotation.round_off,
            paid_amount=Decimal("0"),
            balance_amount=totals.total_amount,
            bank_id=quotation.bank_id,
            notes=quotation.notes,
            terms_and_condition=quotation.terms_and_condition,
            is_recurring=False,
            recurring_duration=0,
            sign_type=quotation.sign_type,
            signature_id=quotation.signature_id,
            signature_name=quotation.signature_name,
            signature_image=quotation.signature_image,
            bill_from=quotation.bill_from,
            bill_to=quotation.customer_id,
            user_id=self.user_id,
            is_deleted=False,
        )
        assign_totals(invoice, totals, INVOICE_TOTALS)
        invoice.invoice_number = await DocumentSequenceService(self.db).get_next_number(
            DocumentType.INVOICE.value
        )
        self.db.add(invoice)
        await self.db.flush()

        quotation.status = QuotationStatus.CONVERTED.value
        quotation.convert_type = "invoice"
        quotation.converted_invoice_id = invoice.id
        await self.db.flush()
        await self.db.refresh(quotation)
        await self.db.refresh(invoice)

        logger.info(f"Converted quotation {quotation.quotation_number} into invoice {invoice.invoice_number}")
        return quotation, invoice
