"""Query execution package."""

from expensetracker.queries.executor import ExpenseQueryExecutor, QueryExecutionError
from expensetracker.queries.periods import (
    SUPPORTED_PERIODS,
    detect_time_period,
    get_date_range,
)
from expensetracker.queries.summary import (
    UNKNOWN_CURRENCY,
    category_totals,
    summarize_by_category,
    summarize_total,
)

__all__ = [
    "ExpenseQueryExecutor",
    "QueryExecutionError",
    "SUPPORTED_PERIODS",
    "UNKNOWN_CURRENCY",
    "category_totals",
    "detect_time_period",
    "get_date_range",
    "summarize_by_category",
    "summarize_total",
]
