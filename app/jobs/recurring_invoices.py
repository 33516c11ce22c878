"""
Recurring Invoice Job

Runs once a day:
1. Claim the "recurring_invoices" job lock (skip if another instance holds it)
2. Find recurring invoices whose next_recurring_date has arrived
3. Roll each one in its own transaction; one failure never blocks the rest
4. Release the lock

Each invoice is committed on its own, so a crash part-way leaves the
processed invoices rolled (and stamped with last_rolled_on) and the rest
untouched for the next run.
"""

import logging
import os
import socket
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.invoice import Invoice
from app.models.job_lock import JobLock
from app.services.invoice_service import roll_recurring_invoice

logger = logging.getLogger(__name__)

LOCK_NAME = "recurring_invoices"
INSTANCE_ID = f"{socket.gethostname()}:{os.getpid()}"


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back without tzinfo
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def claim_job_lock(db: AsyncSession, name: str, owner: str, ttl_minutes: int) -> bool:
    """Take the named lease if it is free or expired; commits on success."""
    now = datetime.now(timezone.utc)
    stmt = select(JobLock).where(JobLock.name == name).with_for_update()

    lock = (await db.execute(stmt)).scalar_one_or_none()
    if lock is None:
        insert = pg_insert(JobLock) if db.get_bind().dialect.name == "postgresql" else sqlite_insert(JobLock)
        await db.execute(insert.values(name=name).on_conflict_do_nothing(index_elements=["name"]))
        lock = (await db.execute(stmt.execution_options(populate_existing=True))).scalar_one()

    locked_until = _aware(lock.locked_until)
    if locked_until and locked_until > now and lock.owner != owner:
        await db.rollback()
        return False

    lock.owner = owner
    lock.locked_until = now + timedelta(minutes=ttl_minutes)
    await db.commit()
    return True


async def release_job_lock(db: AsyncSession, name: str, owner: str) -> None:
    lock = (await db.execute(
        select(JobLock).where(JobLock.name == name).with_for_update()
    )).scalar_one_or_none()
    if lock is not None and lock.owner == owner:
        lock.locked_until = None
    await db.commit()


async def run_recurring_invoice_job(
    db: AsyncSession,
    today: Optional[date] = None,
    owner: str = INSTANCE_ID,
    user_id: Optional[uuid.UUID] = None,
) -> Dict[str, Any]:
    """
    Roll every recurring invoice that is due on or before ``today``.

    ``user_id`` limits the run to one user's invoices (manual runs).

    Returns a summary dict: started_at, finished_at, checked, created,
    skipped and errors (one entry per failed invoice).
    """
    today = today or date.today()
    started_at = datetime.now(timezone.utc)
    summary: Dict[str, Any] = {
        "started_at": started_at,
        "finished_at": None,
        "checked": 0,
        "created": 0,
        "skipped": 0,
        "errors": [],
    }

    if not await claim_job_lock(db, LOCK_NAME, owner, settings.RECURRING_LOCK_TTL_MINUTES):
        logger.info("Recurring invoice job already running elsewhere, skipping")
        summary["skipped_run"] = True
        summary["finished_at"] = datetime.now(timezone.utc)
        return summary

    try:
        stmt = (
            select(Invoice.id)
            .where(
                Invoice.is_recurring == True,  # noqa: E712
                Invoice.is_deleted == False,  # noqa: E712
                Invoice.next_recurring_date.is_not(None),
                Invoice.next_recurring_date <= today,
                or_(Invoice.last_rolled_on.is_(None), Invoice.last_rolled_on != today),
            )
            .order_by(Invoice.next_recurring_date, Invoice.created_at)
        )
        if user_id is not None:
            stmt = stmt.where(Invoice.user_id == user_id)
        result = await db.execute(stmt)
        due_ids: List[uuid.UUID] = list(result.scalars().all())
        await db.commit()

        logger.info(f"Recurring invoice job: {len(due_ids)} invoice(s) due on {today}")

        for invoice_id in due_ids:
            summary["checked"] += 1
            try:
                parent = (await db.execute(
                    select(Invoice)
                    .where(Invoice.id == invoice_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )).scalar_one_or_none()

                if parent is None or parent.is_deleted or not parent.is_recurring:
                    summary["skipped"] += 1
                    await db.rollback()
                    continue

                child, reason = await roll_recurring_invoice(db, parent, today)
                await db.commit()

                if child is None:
                    summary["skipped"] += 1
                    logger.info(f"Skipped {parent.invoice_number}: {reason}")
                else:
                    summary["created"] += 1
            except Exception as e:
                await db.rollback()
                logger.exception(f"Failed to roll recurring invoice {invoice_id}")
                summary["errors"].append({"invoice_id": str(invoice_id), "error": str(e)})
    finally:
        await release_job_lock(db, LOCK_NAME, owner)

    summary["finished_at"] = datetime.now(timezone.utc)
    logger.info(
        f"Recurring invoice job finished: checked={summary['checked']} "
        f"created={summary['created']} skipped={summary['skipped']} errors={len(summary['errors'])}"
    )
    return summary


async def recurring_invoice_job() -> Dict[str, Any]:
    """Scheduler entry point: runs the job on a fresh session."""
    from app.database import async_session_factory

    async with async_session_factory() as session:
        return await run_recurring_invoice_job(session)
