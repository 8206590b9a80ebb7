"""Calendar-month arithmetic for budget periods."""

import calendar
from datetime import date


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of the given month."""
    return date(year, month, 1), last_day_of_month(year, month)


def previous_period(start_date: date) -> tuple[date, date]:
    """The full calendar month before the one start_date falls in.

    January wraps to December of the previous year.
    """
    if start_date.month == 1:
        return month_bounds(start_date.year - 1, 12)
    return month_bounds(start_date.year, start_date.month - 1)
