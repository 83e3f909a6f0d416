"""Billing period arithmetic."""

import calendar as cal
from datetime import datetime

from telebill.core.exceptions import UnknownBillingPeriodError
from telebill.models.billing_account import BillingPeriod

_PERIOD_MONTHS = {
    BillingPeriod.MONTHLY.value: 1,
    BillingPeriod.QUARTERLY.value: 3,
    BillingPeriod.YEARLY.value: 12,
}


def _add_months(dt: datetime, months: int) -> datetime:
    """Add months to a datetime, clamping to last day of month."""
    month = dt.month - 1 + months
    year = dt.year + month // 12
    month = month % 12 + 1
    max_day = cal.monthrange(year, month)[1]
    day = min(dt.day, max_day)
    return dt.replace(year=year, month=month, day=day)


def period_months(period: str) -> int:
    try:
        return _PERIOD_MONTHS[str(period)]
    except KeyError:
        raise UnknownBillingPeriodError(period) from None


def add_period(dt: datetime, period: str) -> datetime:
    """Advance ``dt`` by one billing period."""
    return _add_months(dt, period_months(period))


def subtract_period(dt: datetime, period: str) -> datetime:
    """Step ``dt`` back by one billing period."""
    return _add_months(dt, -period_months(period))


def month_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Start of the calendar month containing ``moment`` and start of the next."""
    start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start, _add_months(start, 1)
