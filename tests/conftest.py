"""
Shared fakes for the test suite.

Nothing here touches the network: the language model, the Supabase
tables and the auth service are all replaced by in-memory stand-ins.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional, Union
from unittest.mock import MagicMock

import pytest

from expensetracker.agents.gemini import TextGenerator
from expensetracker.audit import AuditLogger
from expensetracker.config import AppSettings, SupabaseSettings
from expensetracker.errors import AuthRequired, ConfigurationError, InvalidInput
from expensetracker.models.audit import AuditEvent
from expensetracker.models.expense import (
    BudgetAllocation,
    ExpenseRecord,
    NewExpense,
    Receipt,
)
from expensetracker.models.user import AuthSession, AuthUser
from expensetracker.services.auth.interface import AuthServiceInterface, AuthStateCallback
from expensetracker.services.storage.interface import (
    BudgetStorageInterface,
    ExpenseStorageInterface,
    NotFoundError,
    ReceiptStorageInterface,
    StorageError,
)
from expensetracker.services.storage.supabase_store import SupabaseClient


FIXED_TODAY = date(2025, 3, 21)

LUNCH_JSON = (
    '{"amount": "250", "currency": "INR", "category": "food", '
    '"date": "20-03-2025", "payment_method": "cash"}'
)


class StubGenerator(TextGenerator):
    """Returns canned text (or raises) and records every prompt."""

    def __init__(self, text: str = LUNCH_JSON, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


class RecordingAuditLogger(AuditLogger):
    """Keeps every event it logs in ``events``."""

    def __init__(self):
        super().__init__()
        self.events: list[AuditEvent] = []

    async def log(self, event: AuditEvent) -> None:
        self.events.append(event)
        await super().log(event)

    def of_type(self, event_type) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]


class InMemoryExpenseStorage(ExpenseStorageInterface):
    def __init__(self, rows: Optional[list[ExpenseRecord]] = None, fail_with: Optional[str] = None):
        self.rows: list[ExpenseRecord] = list(rows or [])
        self.inserted: list[dict[str, Any]] = []
        self.fail_with = fail_with
        self.list_calls: list[dict[str, Any]] = []

    async def insert_expense(self, expense: NewExpense) -> ExpenseRecord:
        if self.fail_with:
            raise StorageError(self.fail_with)
        row = expense.to_row()
        self.inserted.append(row)
        record = ExpenseRecord(id=len(self.rows) + 1, **row)
        self.rows.append(record)
        return record

    async def list_expenses(self, user_id, category=None, start_date=None, end_date=None):
        self.list_calls.append({
            "user_id": user_id,
            "category": category,
            "start_date": start_date,
            "end_date": end_date,
        })
        if self.fail_with:
            raise StorageError(self.fail_with)
        rows = [r for r in self.rows if r.user_id == user_id]
        if category:
            rows = [r for r in rows if r.category.lower() == category.lower()]
        if start_date:
            rows = [r for r in rows if r.date >= start_date]
        if end_date:
            rows = [r for r in rows if r.date <= end_date]
        return sorted(rows, key=lambda r: r.date, reverse=True)


class InMemoryReceiptStorage(ReceiptStorageInterface):
    def __init__(self, fail_index: bool = False):
        self.files: dict[str, bytes] = {}
        self.rows: list[Receipt] = []
        self.fail_index = fail_index

    async def upload_file(self, path: str, content: bytes, content_type: str) -> str:
        self.files[path] = content
        return path

    async def insert_index_row(self, path: str) -> Receipt:
        if self.fail_index:
            raise StorageError("insert rejected")
        receipt = Receipt(id=len(self.rows) + 1, url=path, public_url=self.public_url(path))
        self.rows.append(receipt)
        return receipt

    async def list_receipts(self, limit: int = 100) -> list[Receipt]:
        return self.rows[:limit]

    async def delete_receipt(self, path: str) -> bool:
        if path not in self.files:
            raise NotFoundError(f"Receipt not found: {path}")
        del self.files[path]
        self.rows = [r for r in self.rows if r.url != path]
        return True

    def public_url(self, path: str) -> str:
        return f"https://storage.test/Receipts/{path}"


class InMemoryBudgetStorage(BudgetStorageInterface):
    def __init__(self, budgets: Optional[list[BudgetAllocation]] = None):
        self.budgets = {b.id: b for b in (budgets or [])}

    async def list_budgets(self) -> list[BudgetAllocation]:
        return list(self.budgets.values())

    async def update_budget(self, budget_id: Union[int, str], budget: Decimal) -> BudgetAllocation:
        if budget_id not in self.budgets:
            raise NotFoundError(f"Budget not found: {budget_id}")
        updated = self.budgets[budget_id].model_copy(update={"budget": budget})
        self.budgets[budget_id] = updated
        return updated


class FakeAuthService(AuthServiceInterface):
    """Accepts exactly one token, ``good-token``, owned by user ``u1``."""

    VALID_TOKEN = "good-token"

    def __init__(self, can_admin: bool = True):
        self.can_admin = can_admin
        self.user = AuthUser(id="u1", email="u1@example.com")
        self.reset_requests: list[tuple[str, str]] = []
        self.password_updates: list[tuple[str, str]] = []
        self.callbacks: list[AuthStateCallback] = []

    async def get_user(self, access_token: str) -> AuthUser:
        if access_token != self.VALID_TOKEN:
            raise AuthRequired("Invalid or expired token")
        return self.user

    async def sign_in(self, email: str, password: str) -> AuthSession:
        if password != "secret":
            raise AuthRequired("Invalid login credentials")
        return AuthSession(access_token=self.VALID_TOKEN, user=self.user)

    async def sign_up(self, email: str, password: str) -> AuthUser:
        return AuthUser(id="new-user", email=email)

    async def sign_out(self) -> None:
        return None

    async def send_password_reset(self, email: str, redirect_to: str) -> dict[str, Any]:
        if "@" not in email:
            raise InvalidInput("Unable to validate email address: invalid format")
        self.reset_requests.append((email, redirect_to))
        return {}

    async def verify_otp(self, email: str, token: str, otp_type: str = "recovery") -> AuthSession:
        if token != "123456":
            raise AuthRequired("Token has expired or is invalid")
        return AuthSession(access_token=self.VALID_TOKEN, user=self.user)

    async def update_password(self, access_token: str, password: str) -> AuthUser:
        user = await self.get_user(access_token)
        if not self.can_admin:
            raise ConfigurationError("Server configuration error")
        self.password_updates.append((user.id, password))
        return user

    def on_auth_state_change(self, callback: AuthStateCallback) -> Callable[[], None]:
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)


def make_client(data=None, service_role_key=None):
    """SupabaseClient whose query builder returns itself until ``execute``."""
    settings = SupabaseSettings(
        url="https://project.supabase.co/",
        anon_key="anon",
        service_role_key=service_role_key,
    )
    client = SupabaseClient(settings)

    query = MagicMock(name="query")
    for method in ("select", "insert", "update", "delete", "eq", "ilike", "gte", "lte", "order"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=data if data is not None else [])

    backend = MagicMock(name="supabase")
    backend.table.return_value = query
    client._client = backend
    return client, backend, query


def make_expense(
    amount: str,
    category: str = "food",
    day: date = FIXED_TODAY,
    currency: str = "INR",
    user_id: str = "u1",
) -> ExpenseRecord:
    return ExpenseRecord(
        user_id=user_id,
        amount=Decimal(amount),
        currency=currency,
        category=category,
        date=day,
        payment_method="cash",
    )


@pytest.fixture
def app_settings():
    return AppSettings()


@pytest.fixture
def expense_storage():
    return InMemoryExpenseStorage()


@pytest.fixture
def generator():
    return StubGenerator()
