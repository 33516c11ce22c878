"""Cadence arithmetic for recurring invoices."""

from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

CADENCES = ("daily", "weekly", "monthly", "yearly")


def advance_date(start: date, cadence: str, duration: int = 1) -> date:
    """
    Advance ``start`` by ``duration`` cadence periods.

    daily +N days, weekly +7N days, monthly +N calendar months,
    yearly +N years. Month ends clamp (31 Jan + 1 month = 28/29 Feb).
    """
    if duration < 1:
        raise ValueError("recurring duration must be at least 1")

    if cadence == "daily":
        return start + timedelta(days=duration)
    if cadence == "weekly":
        return start + timedelta(weeks=duration)
    if cadence == "monthly":
        return start + relativedelta(months=duration)
    if cadence == "yearly":
        return start + relativedelta(years=duration)
    raise ValueError(f"Unknown recurring cadence '{cadence}'. Valid: {', '.join(CADENCES)}")
