"""
APScheduler Configuration

Single-process scheduler for the daily recurring invoice rollover and the
periodic purge of expired blacklisted tokens.
Several API instances may each run a scheduler; the rollover job takes a
database lease (job_locks) so only one of them does the rollover.
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings

logger = logging.getLogger(__name__)

RECURRING_JOB_ID = "recurring_invoices"
TOKEN_CLEANUP_JOB_ID = "token_blacklist_cleanup"

# Job stores
jobstores = {
    'default': MemoryJobStore()
}

# Executors
executors = {
    'default': AsyncIOExecutor(),
}

# Job defaults
job_defaults = {
    'coalesce': True,  # Combine multiple pending executions into one
    'max_instances': 1,  # Only one instance of each job at a time
    'misfire_grace_time': 3600,  # A run missed by up to an hour still fires
}

scheduler = AsyncIOScheduler(
    jobstores=jobstores,
    executors=executors,
    job_defaults=job_defaults,
    timezone=settings.SCHEDULER_TIMEZONE
)


async def run_recurring_invoices():
    """Called by APScheduler; failures are logged, never raised into the scheduler."""
    from app.jobs.recurring_invoices import recurring_invoice_job

    try:
        result = await recurring_invoice_job()
        logger.info(
            f"Job '{RECURRING_JOB_ID}' completed: "
            f"{result.get('created', 0)} created, {len(result.get('errors', []))} errors"
        )
    except Exception as e:
        logger.error(f"Job '{RECURRING_JOB_ID}' failed: {e}")


async def run_token_cleanup():
    """Drop blacklist rows whose tokens have expired anyway."""
    from app.core.security import cleanup_expired_blacklist_entries
    from app.database import async_session_factory

    try:
        async with async_session_factory() as session:
            removed = await cleanup_expired_blacklist_entries(session)
            await session.commit()
        logger.info(f"Job '{TOKEN_CLEANUP_JOB_ID}' completed: {removed} expired token(s) removed")
    except Exception as e:
        logger.error(f"Job '{TOKEN_CLEANUP_JOB_ID}' failed: {e}")


def start_scheduler():
    """Register the jobs and start the scheduler."""
    if not scheduler.running:
        scheduler.add_job(
            run_recurring_invoices,
            CronTrigger(
                hour=settings.RECURRING_JOB_HOUR,
                minute=settings.RECURRING_JOB_MINUTE,
                timezone=settings.SCHEDULER_TIMEZONE,
            ),
            id=RECURRING_JOB_ID,
            name='Roll recurring invoices',
            replace_existing=True,
        )

        scheduler.add_job(
            run_token_cleanup,
            IntervalTrigger(hours=6),
            id=TOKEN_CLEANUP_JOB_ID,
            name='Purge expired blacklisted tokens',
            replace_existing=True,
        )

        scheduler.start()
        logger.info("Background job scheduler started")

        for job in scheduler.get_jobs():
            logger.info(f"Scheduled job: {job.name} - Next run: {job.next_run_time}")


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background job scheduler stopped")


def get_job_status():
    """Get status of all scheduled jobs."""
    jobs = scheduler.get_jobs()
    return [
        {
            'id': job.id,
            'name': job.name,
            'next_run_time': str(job.next_run_time) if job.next_run_time else None,
            'trigger': str(job.trigger),
        }
        for job in jobs
    ]
