"""
Background Jobs Module

Handles scheduled tasks for:
- Recurring invoice rollover
"""

from app.jobs.scheduler import scheduler, start_scheduler, shutdown_scheduler, get_job_status
from app.jobs.recurring_invoices import run_recurring_invoice_job

__all__ = [
    "scheduler",
    "start_scheduler",
    "shutdown_scheduler",
    "get_job_status",
    "run_recurring_invoice_job",
]
