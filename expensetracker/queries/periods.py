"""
Named period resolution.

Converts phrases like "last month" into inclusive date ranges.
This is DETERMINISTIC - no LLM involvement. Weeks run Sunday to Saturday.
"""

import re
from datetime import date, timedelta
from typing import Optional

from expensetracker.models.expense import DateRange


SUPPORTED_PERIODS = (
    "today",
    "yesterday",
    "this week",
    "last week",
    "this month",
    "last month",
    "this year",
    "last year",
)

# Checked in order; the first match wins
TIME_PATTERNS = [
    (re.compile(r"today|today's|todays"), "today"),
    (re.compile(r"yesterday|yesterday's|yesterdays"), "yesterday"),
    (re.compile(r"this\s+week|current\s+week|this\s+weeks"), "this week"),
    (re.compile(r"last\s+week|previous\s+week|last\s+weeks"), "last week"),
    (re.compile(r"this\s+month|current\s+month|this\s+months"), "this month"),
    (re.compile(r"last\s+month|previous\s+month|last\s+months"), "last month"),
    (re.compile(r"this\s+year|current\s+year|this\s+years"), "this year"),
    (re.compile(r"last\s+year|previous\s+year|last\s+years"), "last year"),
]


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1) - timedelta(days=1)
    else:
        end = date(year, month + 1, 1) - timedelta(days=1)
    return start, end


def _week_start(day: date) -> date:
    # date.weekday(): Monday=0 ... Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def get_date_range(period: str, today: Optional[date] = None) -> Optional[DateRange]:
    """
    Resolve a named period to an inclusive range.

    Returns None for an unknown period.
    """
    today = today or date.today()
    period = (period or "").lower().strip()

    if period == "today":
        return DateRange(start_date=today, end_date=today)

    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return DateRange(start_date=yesterday, end_date=yesterday)

    if period == "this week":
        start = _week_start(today)
        return DateRange(start_date=start, end_date=start + timedelta(days=6))

    if period == "last week":
        start = _week_start(today) - timedelta(days=7)
        return DateRange(start_date=start, end_date=start + timedelta(days=6))

    if period in ("this month", "current month"):
        start, end = _month_bounds(today.year, today.month)
        return DateRange(start_date=start, end_date=end)

    if period == "last month":
        end_of_last = today.replace(day=1) - timedelta(days=1)
        start, end = _month_bounds(end_of_last.year, end_of_last.month)
        return DateRange(start_date=start, end_date=end)

    if period == "this year":
        return DateRange(
            start_date=date(today.year, 1, 1),
            end_date=date(today.year, 12, 31),
        )

    if period == "last year":
        return DateRange(
            start_date=date(today.year - 1, 1, 1),
            end_date=date(today.year - 1, 12, 31),
        )

    return None


def detect_time_period(text: str) -> Optional[str]:
    """Find the first period phrase in free text, e.g. "what did I spend last week?"."""
    lowered = (text or "").lower()
    for pattern, period in TIME_PATTERNS:
        if pattern.search(lowered):
            return period
    return None
