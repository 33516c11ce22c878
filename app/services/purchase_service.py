"""
Purchase Service

Purchase orders and purchases for one owner.

PO Flow:  NEW → SENT → CONVERTED (creates a Purchase)
                     ↘ CANCELLED

Purchase creation stocks its items in; editing the items later applies
the per-product difference as inventory adjustments.
"""
import uuid
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, List, Tuple

from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.amounts import normalize_items, to_decimal
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.core.formatting import format_purchase, format_purchase_order
from app.models.document_sequence import DocumentType
from app.models.inventory import ReferenceType
from app.models.purchase import PurchaseOrder, PurchaseOrderStatus, Purchase, PurchaseStatus
from app.models.supplier_payment import SupplierPayment
from app.models.user import User
from app.schemas.purchase import (
    PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderConvertRequest,
    PurchaseCreate, PurchaseUpdate,
)
from app.services.document_sequence_service import DocumentSequenceService
from app.services.document_service import (
    DocumentReferences, PURCHASE_SIGN_TYPES, ORDER_SIGN_TYPES,
    document_totals, assign_totals, totals_touched,
)
from app.services.inventory_service import InventoryService
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)

TOTAL_OVERRIDES = ("taxable_amount", "total_discount", "total_tax", "total_amount")


def purchase_status(total: Decimal, paid: Decimal) -> str:
    if paid <= 0:
        return PurchaseStatus.PENDING.value
    if paid >= total:
        return PurchaseStatus.PAID.value
    return PurchaseStatus.PARTIALLY_PAID.value


class PurchaseService:
    """Service for purchase orders and purchases."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id
        self.refs = DocumentReferences(db, user_id)
        self.inventory = InventoryService(db, user_id)

    # ==================== PURCHASE ORDERS ====================

    async def get_purchase_orders(
        self,
        status: Optional[str] = None,
        vendor_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[PurchaseOrder], int]:
        stmt = select(PurchaseOrder).where(
            PurchaseOrder.user_id == self.user_id,
            PurchaseOrder.is_deleted == False,  # noqa: E712
        )
        if status:
            stmt = stmt.where(PurchaseOrder.status == status)
        if vendor_id:
            stmt = stmt.where(PurchaseOrder.vendor_id == vendor_id)
        if start_date:
            stmt = stmt.where(PurchaseOrder.po_date >= start_date)
        if end_date:
            stmt = stmt.where(PurchaseOrder.po_date <= end_date)
        if search:
            pattern = like(search)
            stmt = stmt.where(
                or_(
                    PurchaseOrder.po_number.ilike(pattern, escape=LIKE_ESCAPE),
                    PurchaseOrder.reference_no.ilike(pattern, escape=LIKE_ESCAPE),
                    PurchaseOrder.notes.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        stmt = stmt.order_by(PurchaseOrder.po_date.desc(), PurchaseOrder.created_at.desc())
        return await paginate(self.db, stmt, skip, limit)

    async def get_purchase_order(self, po_id: uuid.UUID) -> PurchaseOrder:
        result = await self.db.execute(
            select(PurchaseOrder).where(PurchaseOrder.id == po_id, PurchaseOrder.user_id == self.user_id)
        )
        po = result.scalar_one_or_none()
        if po is None:
            raise NotFoundError("Purchase order not found")
        return po

    async def format_purchase_orders(self, orders: List[PurchaseOrder]) -> List[Dict[str, Any]]:
        vendors, banks, signatures = await self.refs.related(orders, User, "vendor_id")
        return [
            format_purchase_order(
                po,
                vendor=vendors.get(po.vendor_id),
                bank=banks.get(po.bank_id),
                signature=signatures.get(po.signature_id),
            )
            for po in orders
        ]

    async def get_formatted_purchase_order(self, po_id: uuid.UUID) -> Dict[str, Any]:
        po = await self.get_purchase_order(po_id)
        return (await self.format_purchase_orders([po]))[0]

    async def _get_live_po(self, po_id: uuid.UUID) -> PurchaseOrder:
        result = await self.db.execute(
            select(PurchaseOrder)
            .where(
                PurchaseOrder.id == po_id,
                PurchaseOrder.user_id == self.user_id,
                PurchaseOrder.is_deleted == False,  # noqa: E712
            )
            .with_for_update()
        )
        po = result.scalar_one_or_none()
        if po is None:
            raise NotFoundError("Purchase order not found")
        return po

    async def create_purchase_order(
        self,
        data: PurchaseOrderCreate,
        signature_image: Optional[str] = None
    ) -> Tuple[PurchaseOrder, List[str]]:
        vendor = await self.refs.vendor(data.vendor_id)
        await self.refs.bank(data.bank_id)
        await self.refs.check_items(data.items)

        items = normalize_items(data.items)
        totals = document_totals(items, data.model_dump(), round_off=data.round_off)

        po = PurchaseOrder(
            vendor_id=vendor.id,
            po_date=data.po_date,
            due_date=data.due_date,
            reference_no=data.reference_no,
            items=items,
            status=PurchaseOrderStatus.NEW.value,
            convert_type=data.convert_type,
            round_off=data.round_off,
            bank_id=data.bank_id,
            notes=data.notes,
            terms_and_condition=data.terms_and_condition,
            bill_from=vendor.id,
            bill_to=self.user_id,
            user_id=self.user_id,
            is_deleted=False,
        )
        assign_totals(po, totals)
        stale = await self.refs.apply_signature(
            po, ORDER_SIGN_TYPES,
            data.sign_type, data.signature_id, data.signature_name, signature_image,
        )

        po.po_number = await DocumentSequenceService(self.db).get_next_number(DocumentType.PURCHASE_ORDER.value)
        self.db.add(po)
        await self.db.flush()
        await self.db.refresh(po)
        logger.info(f"Created purchase order {po.po_number} for vendor {vendor.id}")
        return po, stale

    async def update_purchase_order(
        self,
        po_id: uuid.UUID,
        data: PurchaseOrderUpdate,
        signature_image: Optional[str] = None
    ) -> Tuple[PurchaseOrder, List[str]]:
        po = await self._get_live_po(po_id)
        if po.status == PurchaseOrderStatus.CONVERTED.value:
            raise BusinessRuleError("A converted purchase order cannot be modified")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("vendor_id"):
            await self.refs.vendor(update_data["vendor_id"])
            po.bill_from = update_data["vendor_id"]
        if "bank_id" in update_data:
            await self.refs.bank(update_data["bank_id"])
        if data.items is not None:
            await self.refs.check_items(data.items)
            update_data["items"] = normalize_items(data.items)
        if update_data.get("status") is not None:
            if update_data["status"] == PurchaseOrderStatus.CONVERTED:
                raise BusinessRuleError("Use the convert action to convert a purchase order")
            update_data["status"] = PurchaseOrderStatus(update_data["status"]).value

        recalc = totals_touched(update_data)
        sign_args = {key: update_data.pop(key, None) for key in ("sign_type", "signature_id", "signature_name")}
        overrides = {key: update_data.pop(key, None) for key in TOTAL_OVERRIDES}

        for field, value in update_data.items():
            setattr(po, field, value)

        if po.due_date and po.due_date < po.po_date:
            raise BusinessRuleError("due_date cannot be before po_date")

        if recalc:
            assign_totals(po, document_totals(po.items, overrides, round_off=po.round_off))

        stale = []
        if any(value is not None for value in sign_args.values()) or signature_image:
            stale = await self.refs.apply_signature(
                po, ORDER_SIGN_TYPES,
                sign_args["sign_type"], sign_args["signature_id"], sign_args["signature_name"],
                signature_image,
            )

        await self.db.flush()
        await self.db.refresh(po)
        return po, stale

    async def delete_purchase_order(self, po_id: uuid.UUID) -> PurchaseOrder:
        po = await self._get_live_po(po_id)
        po.is_deleted = True
        await self.db.flush()
        return po

    async def convert_purchase_order(
        self,
        po_id: uuid.UUID,
        data: Optional[PurchaseOrderConvertRequest] = None
    ) -> Tuple[PurchaseOrder, Purchase]:
        """Create a Purchase from the order and mark the order CONVERTED."""
        data = data or PurchaseOrderConvertRequest()
        po = await self._get_live_po(po_id)
        if po.status == PurchaseOrderStatus.CONVERTED.value:
            raise BusinessRuleError("Purchase order has already been converted")
        if po.status == PurchaseOrderStatus.CANCELLED.value:
            raise BusinessRuleError("A cancelled purchase order cannot be converted")

        purchase = Purchase(
            vendor_id=po.vendor_id,
            purchase_date=data.purchase_date or date.today(),
            reference_no=po.reference_no or po.po_number,
            supplier_invoice_serial_number=data.supplier_invoice_serial_number,
            items=[dict(item) for item in (po.items or [])],
            status=PurchaseStatus.PENDING.value,
            payment_mode=data.payment_mode.value if data.payment_mode else None,
            taxable_amount=po.taxable_amount,
            total_discount=po.total_discount,
            total_tax=po.total_tax,
            total_amount=po.total_amount,
            round_off=po.round_off,
            paid_amount=Decimal("0"),
            balance_amount=po.total_amount,
            bank_id=po.bank_id,
            notes=po.notes,
            terms_and_condition=po.terms_and_condition,
            bill_from=po.bill_from,
            bill_to=po.bill_to,
            user_id=self.user_id,
            is_deleted=False,
        )
        # eSignature is not a purchase sign type; the converted purchase keeps it unsigned
        if po.sign_type in PURCHASE_SIGN_TYPES:
            purchase.sign_type = po.sign_type
            purchase.signature_id = po.signature_id
            purchase.signature_name = po.signature_name
            purchase.signature_image = po.signature_image

        purchase.purchase_number = await DocumentSequenceService(self.db).get_next_number(
            DocumentType.PURCHASE.value
        )
        self.db.add(purchase)
        await self.db.flush()

        await self.inventory.apply_items(
            purchase.items, 1, ReferenceType.PURCHASE, purchase.id,
            notes=f"Purchase {purchase.purchase_number}",
        )

        po.status = PurchaseOrderStatus.CONVERTED.value
        po.convert_type = "purchase"
        po.converted_purchase_id = purchase.id
        await self.db.flush()
        await self.db.refresh(po)
        await self.db.refresh(purchase)

        logger.info(f"Converted purchase order {po.po_number} into {purchase.purchase_number}")
        return po, purchase

    # ==================== PURCHASES ====================

    async def get_purchases(
        self,
        status: Optional[str] = None,
        vendor_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Purchase], int]:
        stmt = select(Purchase).where(
            Purchase.user_id == self.user_id,
            Purchase.is_deleted == False,  # noqa: E712
        )
        if status:
            stmt = stmt.where(Purchase.status == status)
        if vendor_id:
            stmt = stmt.where(Purchase.vendor_id == vendor_id)
        if start_date:
            stmt = stmt.where(Purchase.purchase_date >= start_date)
        if end_date:
            stmt = stmt.where(Purchase.purchase_date <= end_date)
        if search:
            pattern = like(search)
            stmt = stmt.where(
                or_(
                    Purchase.purchase_number.ilike(pattern, escape=LIKE_ESCAPE),
                    Purchase.reference_no.ilike(pattern, escape=LIKE_ESCAPE),
                    Purchase.supplier_invoice_serial_number.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        stmt = stmt.order_by(Purchase.purchase_date.desc(), Purchase.created_at.desc())
        return await paginate(self.db, stmt, skip, limit)

    async def get_purchase(self, purchase_id: uuid.UUID) -> Purchase:
        result = await self.db.execute(
            select(Purchase).where(Purchase.id == purchase_id, Purchase.user_id == self.user_id)
        )
        purchase = result.scalar_one_or_none()
        if purchase is None:
            raise NotFoundError("Purchase not found")
        return purchase

    async def format_purchases(self, purchases: List[Purchase]) -> List[Dict[str, Any]]:
        """Formatted projections with vendor, bank and signature blocks."""
        vendors, banks, signatures = await self.refs.related(purchases, User, "vendor_id")
        return [
            format_purchase(
                purchase,
                vendor=vendors.get(purchase.vendor_id),
                bank=banks.get(purchase.bank_id),
                signature=signatures.get(purchase.signature_id),
            )
            for purchase in purchases
        ]

    async def get_formatted_purchase(self, purchase_id: uuid.UUID) -> Dict[str, Any]:
        purchase = await self.get_purchase(purchase_id)
        return (await self.format_purchases([purchase]))[0]

    async def get_live_purchase(self, purchase_id: uuid.UUID) -> Purchase:
        """Non-deleted purchase, locked for the rest of the transaction."""
        result = await self.db.execute(
            select(Purchase)
            .where(
                Purchase.id == purchase_id,
                Purchase.user_id == self.user_id,
                Purchase.is_deleted == False,  # noqa: E712
            )
            .with_for_update()
        )
        purchase = result.scalar_one_or_none()
        if purchase is None:
            raise NotFoundError("Purchase not found")
        return purchase

    async def create_purchase(
        self,
        data: PurchaseCreate,
        signature_image: Optional[str] = None
    ) -> Tuple[Purchase, List[str]]:
        vendor = await self.refs.vendor(data.vendor_id)
        await self.refs.bank(data.bank_id)
        await self.refs.check_items(data.items)

        items = normalize_items(data.items)
        totals = document_totals(items, data.model_dump(), round_off=data.round_off)

        purchase = Purchase(
            vendor_id=vendor.id,
            purchase_date=data.purchase_date,
            reference_no=data.reference_no,
            supplier_invoice_serial_number=data.supplier_invoice_serial_number,
            items=items,
            status=PurchaseStatus.PENDING.value,
            payment_mode=data.payment_mode.value if data.payment_mode else None,
            round_off=data.round_off,
            paid_amount=Decimal("0"),
            balance_amount=totals.total_amount,
            bank_id=data.bank_id,
            notes=data.notes,
            terms_and_condition=data.terms_and_condition,
            bill_from=vendor.id,
            bill_to=self.user_id,
            user_id=self.user_id,
            is_deleted=False,
        )
        assign_totals(purchase, totals)
        stale = await self.refs.apply_signature(
            purchase, PURCHASE_SIGN_TYPES,
            data.sign_type, data.signature_id, data.signature_name, signature_image,
        )

        purchase.purchase_number = await DocumentSequenceService(self.db).get_next_number(
            DocumentType.PURCHASE.value
        )
        self.db.add(purchase)
        await self.db.flush()

        moved = await self.inventory.apply_items(
            items, 1, ReferenceType.PURCHASE, purchase.id,
            notes=f"Purchase {purchase.purchase_number}",
        )
        await self.db.refresh(purchase)
        logger.info(f"Created purchase {purchase.purchase_number} ({moved} stock movements)")
        return purchase, stale

    async def _has_payments(self, purchase_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(SupplierPayment).where(
                SupplierPayment.purchase_id == purchase_id,
                SupplierPayment.is_deleted == False,  # noqa: E712
            )
        )
        return (result.scalar() or 0) > 0

    async def update_purchase(
        self,
        purchase_id: uuid.UUID,
        data: PurchaseUpdate,
        signature_image: Optional[str] = None
    ) -> Tuple[Purchase, List[str]]:
        purchase = await self.get_live_purchase(purchase_id)
        update_data = data.model_dump(exclude_unset=True)
        old_items = [dict(item) for item in (purchase.items or [])]

        if update_data.get("vendor_id"):
            await self.refs.vendor(update_data["vendor_id"])
            purchase.bill_from = update_data["vendor_id"]
        if "bank_id" in update_data:
            await self.refs.bank(update_data["bank_id"])
        if data.items is not None:
            await self.refs.check_items(data.items)
            update_data["items"] = normalize_items(data.items)
        if update_data.get("payment_mode") is not None:
            update_data["payment_mode"] = update_data["payment_mode"].value
        requested_status = update_data.pop("status", None)

        recalc = totals_touched(update_data)
        sign_args = {key: update_data.pop(key, None) for key in ("sign_type", "signature_id", "signature_name")}
        overrides = {key: update_data.pop(key, None) for key in TOTAL_OVERRIDES}

        for field, value in update_data.items():
            setattr(purchase, field, value)

        if recalc:
            totals = document_totals(purchase.items, overrides, round_off=purchase.round_off)
            paid = to_decimal(purchase.paid_amount)
            if totals.total_amount < paid and await self._has_payments(purchase.id):
                raise BusinessRuleError(
                    f"Purchase total {totals.total_amount} cannot be less than the amount already paid ({paid})"
                )
            assign_totals(purchase, totals)
            purchase.balance_amount = totals.total_amount - paid

        if requested_status == PurchaseStatus.CANCELLED.value:
            purchase.status = PurchaseStatus.CANCELLED.value
        elif requested_status is not None or purchase.status != PurchaseStatus.CANCELLED.value:
            purchase.status = purchase_status(to_decimal(purchase.total_amount), to_decimal(purchase.paid_amount))

        if "items" in update_data:
            await self.inventory.reapply_items(
                old_items, purchase.items, 1, ReferenceType.PURCHASE, purchase.id,
                notes=f"Purchase {purchase.purchase_number} updated",
            )

        stale = []
        if any(value is not None for value in sign_args.values()) or signature_image:
            stale = await self.refs.apply_signature(
                purchase, PURCHASE_SIGN_TYPES,
                sign_args["sign_type"], sign_args["signature_id"], sign_args["signature_name"],
                signature_image,
            )

        await self.db.flush()
        await self.db.refresh(purchase)
        return purchase, stale

    async def delete_purchase(self, purchase_id: uuid.UUID) -> Purchase:
        purchase = await self.get_live_purchase(purchase_id)
        purchase.is_deleted = True
        await self.db.flush()
        logger.info(f"Soft-deleted purchase {purchase.purchase_number}")
        return purchase
