"""
Aggregations over fetched expense rows.

All arithmetic is Decimal. These functions only format what was fetched;
they never invent rows.
"""

from collections import Counter
from decimal import Decimal
from typing import Iterable

from expensetracker.models.expense import CategorySummary, ExpenseRecord, ExpenseTotal


UNKNOWN_CURRENCY = "unknown currency"


def summarize_total(expenses: Iterable[ExpenseRecord]) -> ExpenseTotal:
    """
    Sum amounts and report the most common currency among the rows.

    Amounts are summed as-is, without conversion.
    """
    rows = list(expenses)
    if not rows:
        return ExpenseTotal(total=Decimal("0"), currency=UNKNOWN_CURRENCY, count=0)

    total = sum((row.amount for row in rows), Decimal("0"))
    currencies = Counter(row.currency for row in rows if row.currency)
    currency = currencies.most_common(1)[0][0] if currencies else UNKNOWN_CURRENCY
    return ExpenseTotal(total=total, currency=currency, count=len(rows))


def category_totals(expenses: Iterable[ExpenseRecord]) -> dict[str, Decimal]:
    """Total per category, matched case-insensitively and keyed lower-case."""
    totals: dict[str, Decimal] = {}
    for row in expenses:
        key = (row.category or "uncategorized").strip().lower()
        totals[key] = totals.get(key, Decimal("0")) + row.amount
    return totals


def summarize_by_category(expenses: Iterable[ExpenseRecord]) -> list[CategorySummary]:
    """Per-category total, count and share of the overall total, largest first."""
    rows = list(expenses)
    totals = category_totals(rows)
    counts = Counter((row.category or "uncategorized").strip().lower() for row in rows)
    grand_total = sum(totals.values(), Decimal("0"))

    summaries = []
    for category, total in totals.items():
        percentage = float(total / grand_total * 100) if grand_total > 0 else 0.0
        summaries.append(CategorySummary(
            category=category,
            total=total,
            count=counts[category],
            percentage=round(percentage, 2),
        ))

    summaries.sort(key=lambda s: s.total, reverse=True)
    return summaries
