"""
Calendar-month arithmetic.

Reports are keyed by month; every date is normalized to the first day of its
month before comparisons.
"""

from datetime import date
from typing import List

from dateutil.relativedelta import relativedelta


def month_start(value: date) -> date:
    """First day of the month containing ``value``."""
    return date(value.year, value.month, 1)


def add_months(value: date, months: int) -> date:
    return month_start(value) + relativedelta(months=months)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start``'s month to ``end``'s month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_range(start: date, count: int) -> List[date]:
    """``count`` consecutive month starts beginning at ``start``'s month."""
    return [add_months(start, i) for i in range(count)]


def period_label(value: date) -> str:
    """ISO-style period label, e.g. ``2025-03``."""
    return f"{value.year:04d}-{value.month:02d}"
