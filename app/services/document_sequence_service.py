"""
Document Sequence Service for Atomic Number Generation

USAGE:
    from app.services.document_sequence_service import DocumentSequenceService

    async def create_invoice(db: AsyncSession):
        service = DocumentSequenceService(db)
        invoice_number = await service.get_next_number("INV")
        # Returns: INV-000001

The counter row is incremented with a single UPDATE ... RETURNING, which
takes the row lock for the rest of the caller's transaction. Two
concurrent creates therefore serialize on the row and never see the same
value; if the caller rolls back, the increment is rolled back with it.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.document_sequence import DocumentSequence, DocumentType

logger = logging.getLogger(__name__)


# Document type metadata
DOCUMENT_METADATA = {
    DocumentType.INVOICE.value: {"name": "Invoice", "padding": 6},
    DocumentType.PURCHASE.value: {"name": "Purchase", "padding": 6},
    DocumentType.PURCHASE_ORDER.value: {"name": "Purchase Order", "padding": 6},
    DocumentType.QUOTATION.value: {"name": "Quotation", "padding": 6},
    DocumentType.DEBIT_NOTE.value: {"name": "Debit Note", "padding": 6},
    DocumentType.SUPPLIER_PAYMENT.value: {"name": "Supplier Payment", "padding": 6},
}

SEPARATOR = "-"


class DocumentSequenceService:
    """Service for generating unique, immutable document numbers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _validate_prefix(prefix: str) -> str:
        doc_type = prefix.upper()
        if doc_type not in DOCUMENT_METADATA:
            valid_types = ", ".join(DOCUMENT_METADATA.keys())
            raise NotFoundError(f"Unknown document prefix '{prefix}'. Valid prefixes: {valid_types}")
        return doc_type

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(DocumentSequence)
        if dialect == "sqlite":
            return sqlite_insert(DocumentSequence)
        raise RuntimeError(f"Unsupported database dialect: {dialect}")

    async def _ensure_sequence(self, prefix: str) -> None:
        """Create the counter row; a concurrent creator wins silently."""
        metadata = DOCUMENT_METADATA[prefix]
        now = datetime.now(timezone.utc)
        stmt = self._insert().values(
            id=uuid.uuid4(),
            prefix=prefix,
            document_name=metadata["name"],
            current_number=0,
            padding_length=metadata["padding"],
            separator=SEPARATOR,
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=["prefix"])
        await self.db.execute(stmt)

    async def _increment(self, prefix: str):
        result = await self.db.execute(
            update(DocumentSequence)
            .where(DocumentSequence.prefix == prefix)
            .values(
                current_number=DocumentSequence.current_number + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(
                DocumentSequence.current_number,
                DocumentSequence.padding_length,
                DocumentSequence.separator,
            )
            .execution_options(synchronize_session=False)
        )
        return result.one_or_none()

    async def get_next_number(self, prefix: str) -> str:
        """
        Issue the next number for ``prefix`` (INV, PUR, PO, QT, DN, PAY).

        Creates the counter row on first use.
        """
        doc_type = self._validate_prefix(prefix)

        row = await self._increment(doc_type)
        if row is None:
            await self._ensure_sequence(doc_type)
            row = await self._increment(doc_type)

        number, padding, separator = row
        doc_number = f"{doc_type}{separator}{str(number).zfill(padding)}"
        logger.info(f"Issued document number {doc_number}")
        return doc_number

    async def preview_next_number(self, prefix: str) -> str:
        """What the next number would be, without consuming it."""
        doc_type = self._validate_prefix(prefix)

        result = await self.db.execute(
            select(DocumentSequence)
            .where(DocumentSequence.prefix == doc_type)
            .execution_options(populate_existing=True)
        )
        sequence = result.scalar_one_or_none()
        if sequence:
            return sequence.preview_next_number()

        padding = DOCUMENT_METADATA[doc_type]["padding"]
        return f"{doc_type}{SEPARATOR}{'1'.zfill(padding)}"

    async def get_current_number(self, prefix: str) -> int:
        """The last issued sequence value (0 if none issued yet)."""
        doc_type = self._validate_prefix(prefix)
        result = await self.db.execute(
            select(DocumentSequence.current_number).where(DocumentSequence.prefix == doc_type)
        )
        return result.scalar_one_or_none() or 0
