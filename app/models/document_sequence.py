"""
Document Sequence Model for Atomic Number Generation

One counter row per document prefix. Numbers are issued by incrementing
the row inside the caller's transaction, so two concurrent creates can
never read the same value.

DOCUMENT FORMATS:
━━━━━━━━━━━━━━━━
• INV: INV-000001 (Invoice)
• PUR: PUR-000001 (Purchase)
• PO:  PO-000001  (Purchase Order)
• QT:  QT-000001  (Quotation)
• DN:  DN-000001  (Debit Note)
• PAY: PAY-000001 (Supplier Payment)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class DocumentType(str, Enum):
    """Document types that use sequence numbering."""
    INVOICE = "INV"
    PURCHASE = "PUR"
    PURCHASE_ORDER = "PO"
    QUOTATION = "QT"
    DEBIT_NOTE = "DN"
    SUPPLIER_PAYMENT = "PAY"


class DocumentSequence(Base):
    """
    Counter for one document prefix.

    Example:
        prefix = "INV", current_number = 42
        → next invoice number: INV-000043
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("prefix", name="uq_document_sequence_prefix"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )

    prefix: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    document_name: Mapped[str] = mapped_column(String(100), nullable=False)

    current_number: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Last used sequence number"
    )
    padding_length: Mapped[int] = mapped_column(Integer, default=6)
    separator: Mapped[str] = mapped_column(String(5), default="-")

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

    def format_number(self, number: int) -> str:
        """Format a sequence value, e.g. 7 -> INV-000007."""
        return f"{self.prefix}{self.separator}{str(number).zfill(self.padding_length)}"

    def preview_next_number(self) -> str:
        """Preview next number without incrementing."""
        return self.format_number(self.current_number + 1)

    def __repr__(self) -> str:
        return f"<DocumentSequence({self.prefix}: {self.current_number})>"
