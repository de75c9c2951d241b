"""
Query Execution Engine

DESIGN DECISION: Reads are DETERMINISTIC.
A named period ("last month") is resolved to a date range here, the
filtered rows are fetched from storage, and totals and summaries are
computed from exactly those rows.

GUARANTEES:
- Only returns real data from storage
- Never invents or estimates
- An unknown period is an error, not a silently unfiltered query
"""

from datetime import date
from typing import Callable, Optional

from expensetracker.errors import ExpenseTrackerError, InvalidInput
from expensetracker.models.expense import CategorySummary, ExpenseRecord, ExpenseTotal
from expensetracker.queries.periods import SUPPORTED_PERIODS, get_date_range
from expensetracker.queries.summary import summarize_by_category, summarize_total
from expensetracker.services.storage.interface import ExpenseStorageInterface, StorageError


class QueryExecutionError(ExpenseTrackerError):
    """Error during query execution."""

    status_code = 500
    code = "query_failed"


class ExpenseQueryExecutor:
    """Executes filtered expense reads against storage."""

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        today: Callable[[], date] = date.today,
    ):
        self._storage = storage
        self._today = today

    def resolve_range(
        self,
        period: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> tuple[Optional[date], Optional[date]]:
        """
        Pick the date bounds for a query.

        A period takes precedence over explicit dates.

        Raises:
            InvalidInput: Unknown period or start after end
        """
        if period:
            date_range = get_date_range(period, self._today())
            if date_range is None:
                raise InvalidInput(
                    f"Unknown period '{period}'. Supported: {', '.join(SUPPORTED_PERIODS)}"
                )
            return date_range.start_date, date_range.end_date

        if start_date and end_date and start_date > end_date:
            raise InvalidInput("start_date must be on or before end_date")
        return start_date, end_date

    async def list_expenses(
        self,
        user_id: str,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period: Optional[str] = None,
    ) -> list[ExpenseRecord]:
        """Fetch a user's expenses, newest first."""
        start, end = self.resolve_range(period, start_date, end_date)
        try:
            return await self._storage.list_expenses(
                user_id=user_id,
                category=category.lower() if category else None,
                start_date=start,
                end_date=end,
            )
        except StorageError as e:
            raise QueryExecutionError(f"Failed to fetch expenses: {e}") from e

    async def get_total(
        self,
        user_id: str,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period: Optional[str] = None,
    ) -> ExpenseTotal:
        """Total spend plus the most common currency."""
        rows = await self.list_expenses(user_id, category, start_date, end_date, period)
        return summarize_total(rows)

    async def get_summary(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period: Optional[str] = None,
    ) -> list[CategorySummary]:
        """Per-category breakdown of a user's spend."""
        rows = await self.list_expenses(user_id, None, start_date, end_date, period)
        return summarize_by_category(rows)
