"""Background job status and manual triggers."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import DB, CurrentUser
from app.config import settings
from app.jobs import get_job_status, run_recurring_invoice_job, scheduler

router = APIRouter(tags=["Jobs"])


@router.get("")
async def list_jobs(current_user: CurrentUser):
    """Scheduler state and the next run of each registered job."""
    return {
        "enabled": settings.SCHEDULER_ENABLED,
        "running": scheduler.running,
        "jobs": get_job_status(),
    }


@router.post("/recurring-invoices/run")
async def run_recurring_invoices_now(
    db: DB,
    current_user: CurrentUser,
    run_date: Optional[date] = Query(None, description="Roll as of this date instead of today"),
):
    """
    Run the recurring invoice rollover immediately for the current user's invoices.

    Invoices already rolled for the day are skipped, so this is safe to
    call alongside the scheduled run. ``run_date`` may backfill a missed
    day but never roll ahead of today.
    """
    if run_date is not None and run_date > date.today():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="run_date cannot be in the future",
        )
    return await run_recurring_invoice_job(db, today=run_date, user_id=current_user.id)
