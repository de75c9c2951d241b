"""
Tests for expense reads: named periods, totals and category summaries.

Period resolution is pinned to a fixed "today" so the ranges are stable.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from conftest import InMemoryExpenseStorage, make_expense
from expensetracker.errors import InvalidInput
from expensetracker.queries import (
    ExpenseQueryExecutor,
    QueryExecutionError,
    category_totals,
    detect_time_period,
    get_date_range,
    summarize_by_category,
    summarize_total,
)
from expensetracker.queries.summary import UNKNOWN_CURRENCY


# A Wednesday
TODAY = date(2025, 3, 19)


class TestPeriods:
    """Tests for get_date_range."""

    def test_today_and_yesterday(self):
        today = get_date_range("today", TODAY)
        assert today.start_date == today.end_date == TODAY
        yesterday = get_date_range("Yesterday", TODAY)
        assert yesterday.start_date == date(2025, 3, 18)

    def test_week_runs_sunday_to_saturday(self):
        week = get_date_range("this week", TODAY)
        assert week.start_date == date(2025, 3, 16)
        assert week.end_date == date(2025, 3, 22)

    def test_last_week(self):
        week = get_date_range("last week", TODAY)
        assert week.start_date == date(2025, 3, 9)
        assert week.end_date == date(2025, 3, 15)

    def test_week_on_a_sunday(self):
        """A Sunday starts its own week."""
        week = get_date_range("this week", date(2025, 3, 16))
        assert week.start_date == date(2025, 3, 16)

    def test_this_month(self):
        month = get_date_range("this month", TODAY)
        assert month.start_date == date(2025, 3, 1)
        assert month.end_date == date(2025, 3, 31)

    def test_last_month_crosses_year(self):
        month = get_date_range("last month", date(2025, 1, 10))
        assert month.start_date == date(2024, 12, 1)
        assert month.end_date == date(2024, 12, 31)

    def test_last_month_february(self):
        month = get_date_range("last month", TODAY)
        assert month.end_date == date(2025, 2, 28)

    def test_years(self):
        assert get_date_range("this year", TODAY).start_date == date(2025, 1, 1)
        assert get_date_range("last year", TODAY).end_date == date(2024, 12, 31)

    def test_unknown_period(self):
        assert get_date_range("fortnight", TODAY) is None

    def test_detect_time_period(self):
        assert detect_time_period("How much did I spend last month?") == "last month"
        assert detect_time_period("show today's expenses") == "today"
        assert detect_time_period("everything please") is None


class TestSummaries:
    """Tests for totals and per-category breakdowns."""

    def test_total_uses_most_common_currency(self):
        rows = [
            make_expense("100", currency="INR"),
            make_expense("50.50", currency="INR"),
            make_expense("10", currency="USD"),
        ]
        total = summarize_total(rows)
        assert total.total == Decimal("160.50")
        assert total.currency == "INR"
        assert total.count == 3

    def test_total_of_nothing(self):
        total = summarize_total([])
        assert total.total == Decimal("0")
        assert total.currency == UNKNOWN_CURRENCY
        assert total.count == 0

    def test_category_totals_case_insensitive(self):
        rows = [make_expense("10", "Food"), make_expense("5", "food"), make_expense("7", "housing")]
        assert category_totals(rows) == {"food": Decimal("15"), "housing": Decimal("7")}

    def test_summary_sorted_with_percentages(self):
        rows = [
            make_expense("25", "housing"),
            make_expense("50", "food"),
            make_expense("25", "food"),
        ]
        summary = summarize_by_category(rows)
        assert [s.category for s in summary] == ["food", "housing"]
        assert summary[0].count == 2
        assert summary[0].percentage == 75.0
        assert summary[1].percentage == 25.0


class TestQueryExecutor:
    """Tests for ExpenseQueryExecutor against in-memory storage."""

    def _executor(self, storage):
        return ExpenseQueryExecutor(storage, today=lambda: TODAY)

    def test_period_wins_over_explicit_dates(self):
        storage = InMemoryExpenseStorage()
        executor = self._executor(storage)
        asyncio.run(executor.list_expenses(
            "u1", period="this month", start_date=date(2020, 1, 1), end_date=date(2020, 1, 2),
        ))
        call = storage.list_calls[-1]
        assert call["start_date"] == date(2025, 3, 1)
        assert call["end_date"] == date(2025, 3, 31)

    def test_category_filter_lowercased(self):
        storage = InMemoryExpenseStorage()
        asyncio.run(self._executor(storage).list_expenses("u1", category="Food"))
        assert storage.list_calls[-1]["category"] == "food"

    def test_unknown_period_rejected(self):
        storage = InMemoryExpenseStorage()
        with pytest.raises(InvalidInput, match="Unknown period"):
            asyncio.run(self._executor(storage).list_expenses("u1", period="someday"))
        assert storage.list_calls == []

    def test_start_after_end_rejected(self):
        with pytest.raises(InvalidInput):
            asyncio.run(self._executor(InMemoryExpenseStorage()).list_expenses(
                "u1", start_date=date(2025, 3, 2), end_date=date(2025, 3, 1),
            ))

    def test_total_only_counts_range(self):
        storage = InMemoryExpenseStorage(rows=[
            make_expense("100", day=date(2025, 3, 18)),
            make_expense("40", day=date(2025, 2, 10)),
            make_expense("999", day=date(2025, 3, 18), user_id="someone-else"),
        ])
        total = asyncio.run(self._executor(storage).get_total("u1", period="this month"))
        assert total.total == Decimal("100")
        assert total.count == 1

    def test_storage_failure(self):
        storage = InMemoryExpenseStorage(fail_with="timeout")
        with pytest.raises(QueryExecutionError) as exc_info:
            asyncio.run(self._executor(storage).get_summary("u1"))
        assert exc_info.value.status_code == 500


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
