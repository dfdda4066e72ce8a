"""Date manipulation utilities - calendar dates only, never instants"""

import calendar
from datetime import date
from typing import Tuple


def days_until(due_date: date, today: date) -> int:
    """Signed whole days from today to due_date (negative when overdue)"""
    return (due_date - today).days


def add_months(from_date: date, months: int = 1) -> date:
    """Same day N months later, clamped to the last day of the target month"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(from_date.day, last_day))


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last day of the calendar month containing day"""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def month_key(day: date) -> str:
    """YYYY-MM key used by budgets"""
    return f"{day.year:04d}-{day.month:02d}"


def clamp_days(days: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, days))
