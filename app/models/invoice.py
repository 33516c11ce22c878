import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, Date, ForeignKey, Integer, Text, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base
from app.db_types import Money, JSONType


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class RecurringCadence(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SignType(str, Enum):
    NONE = "none"
    DIGITAL = "digitalSignature"
    E_SIGNATURE = "eSignature"
    MANUAL = "manualSignature"


class Invoice(Base):
    """
    Sales invoice.

    Line items live in the ``items`` JSON array. Recurring invoices carry
    their cadence; the daily rollover clones them into child invoices
    (parent_invoice_id) and stamps last_rolled_on so a second run on the
    same day is a no-op.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        Index("ix_invoices_recurring_due", "is_recurring", "next_recurring_date"),
        Index("ix_invoices_parent_date", "parent_invoice_id", "invoice_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    invoice_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)

    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id"),
        nullable=False,
        index=True
    )
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    reference_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    items: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default=InvoiceStatus.DRAFT.value, nullable=False, index=True)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)

    # Amounts
    taxable_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    vat: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    total_discount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
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

    # Recurring
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False)
    recurring: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, comment="daily, weekly, monthly, yearly")
    recurring_duration: Mapped[int] = mapped_column(Integer, default=0)
    next_recurring_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_rolled_on: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    parent_invoice_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("invoices.id"),
        nullable=True
    )

    # Signature
    sign_type: Mapped[str] = mapped_column(String(20), default=SignType.NONE.value)
    signature_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("signatures.id"),
        nullable=True
    )
    signature_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    signature_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Parties
    bill_from: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True
    )
    bill_to: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id"),
        nullable=True
    )
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
        return f"<Invoice(number='{self.invoice_number}', status='{self.status}')>"


class InvoicePayment(Base):
    """Payment received against an invoice."""
    __tablename__ = "invoice_payments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    received_on: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    received_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<InvoicePayment(invoice={self.invoice_id}, amount={self.amount})>"
