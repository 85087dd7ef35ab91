"""Calendar arithmetic shared by the analytics components"""

import calendar
from datetime import date


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end (negative if end precedes start).

    A month only counts once the end day-of-month has reached the start
    day-of-month, so Jan 31 -> Feb 28 is 0 months and Jan 15 -> Feb 15 is 1.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month length"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_owned(purchase_date: date, as_of: date) -> int:
    """Ownership length in months, floored at 1 so it is always safe to divide by"""
    return max(months_between(purchase_date, as_of), 1)


def vehicle_age_years(model_year: int, as_of: date) -> int:
    """Age of a model year relative to the reference date, never negative"""
    return max(as_of.year - model_year, 0)
