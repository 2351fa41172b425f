"""
Calendar helpers shared by the recurrence and aggregation engines.

Everything works at month granularity on plain `datetime.date` values.
"""

import calendar
from datetime import date
from typing import Iterator


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))


def add_months(d: date, months: int) -> date:
    """
    Shift a date by whole months.

    The day is clamped to the last valid day of the target month,
    so Jan 31 + 1 month is Feb 28 (or 29).
    """
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(d.day, days_in_month(year, month)))


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, pulling `day` back to the month's last day if needed."""
    return date(year, month, min(day, days_in_month(year, month)))


def iter_months(start: date, end_exclusive: date) -> Iterator[date]:
    """Yield the first day of every month from start up to (not including) end."""
    current = month_start(start)
    stop = month_start(end_exclusive)
    while current < stop:
        yield current
        current = add_months(current, 1)


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def format_month_label(d: date) -> str:
    """Short label like 'Jan/24'."""
    return d.strftime("%b/%y")
