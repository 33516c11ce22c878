"""
Database initialization.

Imports every model module so that Base.metadata knows about all tables,
then creates whatever is missing. Existing tables are left untouched.
"""

import logging

from app.database import engine, Base

logger = logging.getLogger(__name__)


def import_models():
    """Register all ORM models on Base.metadata."""
    from app.models import (  # noqa: F401
        user,
        currency,
        category,
        brand,
        unit,
        tax,
        product,
        customer,
        supplier,
        bank_detail,
        signature,
        document_sequence,
        invoice,
        quotation,
        purchase,
        supplier_payment,
        debit_note,
        inventory,
        company,
        preferences,
        job_lock,
        geography,
        email_template,
    )


async def init_db():
    """Create all tables that do not exist yet."""
    import_models()

    logger.info("Initializing database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready ({len(Base.metadata.tables)} tables registered)")


async def startup_initialization():
    """Run on application startup."""
    await init_db()
