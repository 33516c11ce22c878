"""
Reference checks and signature handling shared by the document services.

Invoices, quotations, purchase orders, purchases and debit notes all carry
line items, an optional bank, and a signature chosen by ``sign_type``.
DocumentReferences validates those against the owner's data before a
document is written.
"""
from typing import Any, Iterable, Mapping, Optional, Sequence
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.amounts import DocumentTotals, compute_totals
from app.core.exceptions import BusinessRuleError, InvalidReferenceError, NotFoundError
from app.models.bank_detail import BankDetail
from app.models.customer import Customer
from app.models.invoice import SignType
from app.models.product import Product
from app.models.signature import Signature
from app.models.unit import Unit
from app.models.user import User, UserType

SALES_SIGN_TYPES = (SignType.NONE.value, SignType.DIGITAL.value, SignType.E_SIGNATURE.value)
PURCHASE_SIGN_TYPES = (SignType.NONE.value, SignType.DIGITAL.value, SignType.MANUAL.value)
ORDER_SIGN_TYPES = tuple(sign.value for sign in SignType)


# Document column holding each aggregate, where it differs from the name in DocumentTotals
INVOICE_TOTALS = {"total_tax": "vat"}
QUOTATION_TOTALS = {"taxable_amount": "sub_total", "total_amount": "grand_total"}
TOTAL_FIELDS = ("taxable_amount", "total_discount", "total_tax", "total_amount")


def document_totals(
    items: Iterable,
    values: Mapping[str, Any],
    columns: Optional[Mapping[str, str]] = None,
    round_off: bool = False,
) -> DocumentTotals:
    """
    Totals for ``items`` with client overrides read from ``values``.

    ``values`` is keyed by the document's own column names (vat,
    sub_total, grand_total...); ``columns`` maps them back.
    """
    columns = columns or {}
    overrides = {name: values.get(columns.get(name, name)) for name in TOTAL_FIELDS}
    return compute_totals(items, round_off=round_off, **overrides)


def assign_totals(document, totals: DocumentTotals, columns: Optional[Mapping[str, str]] = None) -> None:
    columns = columns or {}
    for name in TOTAL_FIELDS:
        setattr(document, columns.get(name, name), getattr(totals, name))


def totals_touched(update_data: Mapping[str, Any], columns: Optional[Mapping[str, str]] = None) -> bool:
    """Whether a partial update changes anything the totals depend on."""
    columns = columns or {}
    keys = {"items", "round_off"} | {columns.get(name, name) for name in TOTAL_FIELDS}
    return any(key in update_data for key in keys)


def sign_value(sign_type) -> Optional[str]:
    if sign_type is None:
        return None
    return sign_type.value if isinstance(sign_type, SignType) else str(sign_type)


class DocumentReferences:
    """Lookups of the records a document points at, for one owner."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    async def customer(self, customer_id: uuid.UUID) -> Customer:
        result = await self.db.execute(
            select(Customer).where(
                Customer.id == customer_id,
                Customer.user_id == self.user_id,
                Customer.is_deleted == False,  # noqa: E712
            )
        )
        customer = result.scalar_one_or_none()
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    async def vendor(self, vendor_id: uuid.UUID) -> User:
        """A vendor must be a supplier user."""
        vendor = await self.db.get(User, vendor_id)
        if vendor is None or vendor.user_type != UserType.SUPPLIER.value:
            raise BusinessRuleError("Vendor must be a valid supplier")
        return vendor

    async def user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise InvalidReferenceError(f"Invalid user id: {user_id}")
        return user

    async def bank(self, bank_id: Optional[uuid.UUID]) -> Optional[BankDetail]:
        if bank_id is None:
            return None
        result = await self.db.execute(
            select(BankDetail).where(
                BankDetail.id == bank_id,
                BankDetail.user_id == self.user_id,
                BankDetail.is_deleted == False,  # noqa: E712
            )
        )
        bank = result.scalar_one_or_none()
        if bank is None:
            raise InvalidReferenceError(f"Invalid bank id: {bank_id}")
        return bank

    async def signature(self, signature_id: uuid.UUID) -> Signature:
        result = await self.db.execute(
            select(Signature).where(
                Signature.id == signature_id,
                Signature.user_id == self.user_id,
                Signature.is_deleted == False,  # noqa: E712
            )
        )
        signature = result.scalar_one_or_none()
        if signature is None:
            raise InvalidReferenceError(f"Invalid signature id: {signature_id}")
        return signature

    async def load(self, model, ids) -> dict:
        """Rows of ``model`` keyed by id."""
        if not ids:
            return {}
        result = await self.db.execute(select(model).where(model.id.in_(ids)))
        return {row.id: row for row in result.scalars().all()}

    async def related(self, documents: Sequence, party_model, party_field: str):
        """
        Parties, banks and signatures referenced by ``documents``, loaded in bulk.

        Returns three dicts keyed by id.
        """
        parties = await self.load(party_model, {getattr(d, party_field) for d in documents})
        banks = await self.load(BankDetail, {d.bank_id for d in documents if d.bank_id})
        signatures = await self.load(Signature, {d.signature_id for d in documents if d.signature_id})
        return parties, banks, signatures

    async def check_items(self, items: Iterable) -> None:
        """Every product_id / unit_id named by a line must exist."""
        product_ids, unit_ids = set(), set()
        for item in items:
            product_id = item.get("product_id") if isinstance(item, dict) else item.product_id
            unit_id = item.get("unit_id") if isinstance(item, dict) else item.unit_id
            if product_id:
                product_ids.add(uuid.UUID(str(product_id)))
            if unit_id:
                unit_ids.add(uuid.UUID(str(unit_id)))

        if product_ids:
            found = set((await self.db.execute(
                select(Product.id).where(Product.id.in_(product_ids))
            )).scalars().all())
            missing = product_ids - found
            if missing:
                raise InvalidReferenceError(f"Invalid product id: {sorted(map(str, missing))[0]}")

        if unit_ids:
            found = set((await self.db.execute(
                select(Unit.id).where(Unit.id.in_(unit_ids))
            )).scalars().all())
            missing = unit_ids - found
            if missing:
                raise InvalidReferenceError(f"Invalid unit id: {sorted(map(str, missing))[0]}")

    async def apply_signature(
        self,
        document,
        allowed: Sequence[str],
        sign_type=None,
        signature_id: Optional[uuid.UUID] = None,
        signature_name: Optional[str] = None,
        image_path: Optional[str] = None,
    ) -> list:
        """
        Set the signature fields of ``document`` for ``sign_type``.

        A missing ``sign_type`` keeps the document's current one. Inline
        signatures (eSignature, manualSignature) need an image, either the
        freshly uploaded ``image_path`` or the one already stored.

        Returns the stored files that are no longer referenced.
        """
        sign_type = sign_value(sign_type) or document.sign_type or SignType.NONE.value
        if sign_type not in allowed:
            raise BusinessRuleError(
                f"Invalid sign_type '{sign_type}'. Valid: {', '.join(allowed)}"
            )

        previous_image = document.signature_image
        stale = []

        if sign_type in (SignType.NONE.value, SignType.DIGITAL.value):
            if sign_type == SignType.DIGITAL.value:
                signature_id = signature_id or document.signature_id
                if not signature_id:
                    raise BusinessRuleError("signature_id is required for digitalSignature")
                await self.signature(signature_id)
            else:
                signature_id = None
            document.signature_id = signature_id
            document.signature_name = None
            document.signature_image = None
            stale.extend(p for p in (previous_image, image_path) if p)
        else:
            image = image_path or previous_image
            if not image:
                raise BusinessRuleError(f"A signature image is required for {sign_type}")
            name = signature_name if signature_name is not None else document.signature_name
            if sign_type == SignType.E_SIGNATURE.value and not name:
                raise BusinessRuleError("signature_name is required for eSignature")
            document.signature_id = None
            document.signature_name = name
            document.signature_image = image
            if image_path and previous_image and previous_image != image_path:
                stale.append(previous_image)

        document.sign_type = sign_type
        return stale
