"""Calendar helpers."""

import calendar
from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def subtract_months(moment: datetime, months: int) -> datetime:
    """Step back ``months`` calendar months, clamping to the month's last day."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month_zero = divmod(index, 12)
    month = month_zero + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
