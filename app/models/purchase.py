"""
Purchase-side documents.

Flow: PurchaseOrder (NEW) → convert → Purchase (pending)
      → SupplierPayment(s) → partially_paid → paid
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base
from app.db_types import Money, JSONType


class PurchaseOrderStatus(str, Enum):
    NEW = "NEW"
    SENT = "SENT"
    CONVERTED = "CONVERTED"
    CANCELLED = "CANCELLED"


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentMode(str, Enum):
    CASH = "CASH"
    CREDIT = "CREDIT"
    CHECK = "CHECK"
    BANK_TRANSFER = "BANK_TRANSFER"
    OTHER = "OTHER"


class PurchaseOrder(Base):
    """Order sent to a supplier before goods are bought."""
    __tablename__ = "purchase_orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    po_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)

    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    po_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    reference_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    items: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default=PurchaseOrderStatus.NEW.value, nullable=False, index=True)
    convert_type: Mapped[str] = mapped_column(String(20), default="purchase", comment="purchase, estimate, invoice")
    converted_purchase_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("purchases.id"),
        nullable=True
    )

    taxable_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    total_discount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    total_tax: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    round_off: Mapped[bool] = mapped_column(Boolean, default=False)

    bank_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bank_details.id"),
        nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terms_and_condition: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sign_type: Mapped[str] = mapped_column(String(20), default="none")
    signature_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("signatures.id"),
        nullable=True
    )
    signature_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    signature_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    bill_from: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    bill_to: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder(number='{self.po_number}', status='{self.status}')>"


class Purchase(Base):
    """
    Goods bought from a supplier.

    Creating a purchase stocks its items in. paid_amount/balance_amount
    are moved by supplier payments, which also drive the status.
    """
    __tablename__ = "purchases"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    purchase_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)

    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    reference_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    supplier_invoice_serial_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    items: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default=PurchaseStatus.PENDING.value, nullable=False, index=True)
    payment_mode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    taxable_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    total_discount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    total_tax: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    round_off: Mapped[bool] = mapped_column(Boolean, default=False)
    paid_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    balance_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))

    bank_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bank_details.id"),
        nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terms_and_condition: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sign_type: Mapped[str] = mapped_column(String(20), default="none", comment="none, digitalSignature, manualSignature")
    signature_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("signatures.id"),
        nullable=True
    )
    signature_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    signature_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    bill_from: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    bill_to: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Purchase(number='{self.purchase_number}', status='{self.status}')>"
