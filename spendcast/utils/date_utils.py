"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import List, Tuple

FRIDAY = 4
SATURDAY = 5


def as_date(value: date) -> date:
    """Drop the time component of a datetime, pass dates through unchanged"""
    if isinstance(value, datetime):
        return value.date()
    return value


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def days_in_month(year: int, month: int) -> int:
    """Number of calendar days in the given month"""
    return calendar.monthrange(year, month)[1]


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last calendar day of the month containing `day`"""
    first = date(day.year, day.month, 1)
    last = date(day.year, day.month, days_in_month(day.year, day.month))
    return first, last


def is_weekend(day_of_week: int) -> bool:
    """Saturday or Sunday, using date.weekday() numbering (Monday == 0)"""
    return day_of_week >= SATURDAY


def is_friday(day_of_week: int) -> bool:
    return day_of_week == FRIDAY


def as_naive_utc(value: datetime) -> datetime:
    """Aware datetimes are converted to UTC and stripped; naive ones are taken as UTC already"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
