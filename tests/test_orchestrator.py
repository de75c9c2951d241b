"""
Integration tests for the orchestrated flows.

Test strategy:
1. Every flow runs against in-memory storage and a fake auth service
2. Writes are checked on the fake backend, not on return values alone
3. No real API calls
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from conftest import (
    FIXED_TODAY,
    FakeAuthService,
    InMemoryBudgetStorage,
    InMemoryExpenseStorage,
    InMemoryReceiptStorage,
    StubGenerator,
    make_expense,
)
from expensetracker.errors import (
    AuthRequired,
    ConfigurationError,
    InvalidInput,
    PersistenceFailed,
)
from expensetracker.models.expense import BudgetAllocation
from expensetracker.orchestrator import BudgetFlow, ExpenseFlow, PasswordFlow, ReceiptFlow


def form(**overrides):
    data = {
        "amount": Decimal("80"),
        "currency": "inr",
        "category": "Transportation",
        "date": date(2025, 3, 20),
        "payment_method": "Credit Card",
        "description": "Cab to office",
    }
    data.update(overrides)
    return data


class TestExpenseFlow:
    """Tests for chat and form entry plus reads."""

    def test_chat_uses_injected_generator(self):
        storage = InMemoryExpenseStorage()
        generator = StubGenerator()
        flow = ExpenseFlow(storage, generator=generator, today=lambda: FIXED_TODAY)

        record = asyncio.run(flow.extract_from_chat(
            [{"role": "user", "content": "lunch 250 INR cash"}], "u1",
        ))

        assert record.amount == Decimal("250")
        assert len(storage.inserted) == 1
        assert len(generator.prompts) == 1

    def test_add_expense_lowercases_fields(self):
        storage = InMemoryExpenseStorage()
        flow = ExpenseFlow(storage)

        record = asyncio.run(flow.add_expense("u1", form()))

        row = storage.inserted[0]
        assert row["category"] == "transportation"
        assert row["payment_method"] == "credit card"
        assert row["currency"] == "INR"
        assert row["description"] == "Cab to office"
        assert record.user_id == "u1"

    def test_add_expense_rejects_invalid_form(self):
        storage = InMemoryExpenseStorage()
        flow = ExpenseFlow(storage)

        with pytest.raises(InvalidInput) as exc_info:
            asyncio.run(flow.add_expense("u1", form(amount=Decimal("0"), payment_method="")))

        assert "Payment method is required" in exc_info.value.message
        assert "Amount must be greater than zero" in exc_info.value.message
        assert storage.inserted == []

    def test_add_expense_needs_user(self):
        with pytest.raises(InvalidInput):
            asyncio.run(ExpenseFlow(InMemoryExpenseStorage()).add_expense("", form()))

    def test_add_expense_backend_failure(self):
        flow = ExpenseFlow(InMemoryExpenseStorage(fail_with="row-level security"))
        with pytest.raises(PersistenceFailed, match="row-level security"):
            asyncio.run(flow.add_expense("u1", form()))

    def test_reads_are_scoped_to_user(self):
        storage = InMemoryExpenseStorage(rows=[
            make_expense("10", day=date(2025, 3, 1)),
            make_expense("20", day=date(2025, 3, 5)),
            make_expense("500", user_id="u2"),
        ])
        flow = ExpenseFlow(storage, today=lambda: FIXED_TODAY)

        rows = asyncio.run(flow.list_expenses("u1"))
        assert [r.amount for r in rows] == [Decimal("20"), Decimal("10")]

        total = asyncio.run(flow.get_total("u1", period="this month"))
        assert total.total == Decimal("30")


class TestReceiptFlow:
    """Tests for receipt upload, listing and delete."""

    def _flow(self, storage):
        return ReceiptFlow(storage, clock=lambda: 1742450000.5)

    def test_upload_stores_file_and_index_row(self):
        storage = InMemoryReceiptStorage()
        receipt = asyncio.run(self._flow(storage).upload(b"jpegdata", "lunch.jpg", "image/jpeg"))

        assert receipt.url == "1742450000500_lunch.jpg"
        assert storage.files == {"1742450000500_lunch.jpg": b"jpegdata"}
        assert receipt.public_url.endswith("1742450000500_lunch.jpg")

    def test_upload_rejects_bad_type(self):
        storage = InMemoryReceiptStorage()
        with pytest.raises(InvalidInput, match="Unsupported file type"):
            asyncio.run(self._flow(storage).upload(b"x", "notes.exe", "application/octet-stream"))
        assert storage.files == {}

    def test_index_failure_is_persistence_error(self):
        storage = InMemoryReceiptStorage(fail_index=True)
        with pytest.raises(PersistenceFailed):
            asyncio.run(self._flow(storage).upload(b"x", "a.png", "image/png"))

    def test_list_and_delete(self):
        storage = InMemoryReceiptStorage()
        flow = self._flow(storage)
        receipt = asyncio.run(flow.upload(b"x", "a.png", "image/png"))

        assert len(asyncio.run(flow.list_receipts())) == 1
        asyncio.run(flow.delete(receipt.url))
        assert asyncio.run(flow.list_receipts()) == []

    def test_delete_missing(self):
        with pytest.raises(InvalidInput, match="not found"):
            asyncio.run(self._flow(InMemoryReceiptStorage()).delete("nope.png"))


class TestBudgetFlow:
    """Tests for budget updates and the dashboard."""

    def _flow(self, expenses=None):
        budgets = InMemoryBudgetStorage([
            BudgetAllocation(id=1, category="food", budget=Decimal("500")),
            BudgetAllocation(id=2, category="housing", budget=Decimal("1000")),
        ])
        return BudgetFlow(budgets, InMemoryExpenseStorage(rows=expenses or []))

    def test_update_budget(self):
        flow = self._flow()
        budget = asyncio.run(flow.update_budget(1, "650.50"))
        assert budget.budget == Decimal("650.50")
        budgets = asyncio.run(flow.list_budgets())
        assert budgets[0].budget == Decimal("650.50")

    @pytest.mark.parametrize("amount", ["abc", "-1", "NaN"])
    def test_update_budget_rejects_bad_amounts(self, amount):
        with pytest.raises(InvalidInput):
            asyncio.run(self._flow().update_budget(1, amount))

    def test_update_unknown_budget(self):
        with pytest.raises(InvalidInput, match="Budget not found"):
            asyncio.run(self._flow().update_budget(99, "10"))

    def test_dashboard_totals(self):
        flow = self._flow(expenses=[
            make_expense("120", "Food"),
            make_expense("30", "food"),
            make_expense("400", "housing"),
        ])
        summary = asyncio.run(flow.dashboard("u1"))

        assert summary.total_budget == Decimal("1500")
        assert summary.spent_by_category == {"food": Decimal("150"), "housing": Decimal("400")}
        assert summary.total_spent == Decimal("550")
        assert summary.remaining == Decimal("950")


class TestPasswordFlow:
    """Tests for reset emails and password updates."""

    def test_request_reset(self):
        auth = FakeAuthService()
        asyncio.run(PasswordFlow(auth).request_reset(" a@b.com ", "http://localhost/reset-password"))
        assert auth.reset_requests == [("a@b.com", "http://localhost/reset-password")]

    def test_request_reset_needs_email(self):
        auth = FakeAuthService()
        with pytest.raises(InvalidInput, match="Email is required"):
            asyncio.run(PasswordFlow(auth).request_reset("  ", "http://x"))
        assert auth.reset_requests == []

    def test_update_password(self):
        auth = FakeAuthService()
        user = asyncio.run(PasswordFlow(auth).update_password("good-token", "n3w-pass"))
        assert user.id == "u1"
        assert auth.password_updates == [("u1", "n3w-pass")]

    def test_update_password_bad_token(self):
        with pytest.raises(AuthRequired):
            asyncio.run(PasswordFlow(FakeAuthService()).update_password("stale", "n3w-pass"))

    def test_update_password_without_admin_key(self):
        with pytest.raises(ConfigurationError):
            asyncio.run(PasswordFlow(FakeAuthService(can_admin=False)).update_password("good-token", "x"))

    def test_empty_password(self):
        auth = FakeAuthService()
        with pytest.raises(InvalidInput, match="Password is required"):
            asyncio.run(PasswordFlow(auth).update_password("good-token", ""))
        assert auth.password_updates == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
