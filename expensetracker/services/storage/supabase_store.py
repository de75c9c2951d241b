"""
Supabase Storage Implementation

DESIGN DECISION: Supabase is the system of record. Expenses, budgets and
the receipt index live in Postgres tables; receipt files live in the
``Receipts`` bucket. All of it is reached through the official ``supabase``
client, which is built once and injected into each storage class.

TRADEOFFS:
- Backend and transport (httpx) errors both surface as StorageError
- Connecting is retried with backoff; writes are NEVER retried, so a
  failed insert cannot turn into a duplicate row
- Filtering happens in the database (eq/ilike/gte/lte), ordering by date desc
- Row level security is the backend's job; we always pass user_id
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

import httpx
from supabase import Client, create_client
from supabase import PostgrestAPIError as APIError
from supabase import StorageException
from tenacity import retry, stop_after_attempt, wait_exponential

from expensetracker.config import SupabaseSettings, get_settings
from expensetracker.models.expense import (
    BudgetAllocation,
    ExpenseRecord,
    NewExpense,
    Receipt,
)
from expensetracker.services.storage.interface import (
    BudgetStorageInterface,
    ConnectionError,
    ExpenseStorageInterface,
    NotFoundError,
    ReceiptStorageInterface,
    StorageError,
)


# Supabase drops this into "empty" folders; it is not a receipt
PLACEHOLDER_FILE = ".emptyFolderPlaceholder"


def _api_message(error: APIError) -> str:
    return getattr(error, "message", None) or str(error)


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Holds the anon-key client used for all data access, and lazily builds
    a service-role client for admin auth calls when a key is configured.
    """

    def __init__(self, settings: Optional[SupabaseSettings] = None):
        self._client: Optional[Client] = None
        self._service_client: Optional[Client] = None
        self._settings = settings or get_settings().supabase

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Client:
        """Build the anon-key client once."""
        if self._client is None:
            try:
                self._client = create_client(self._settings.url, self._settings.anon_key)
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}") from e
        return self._client

    @property
    def has_service_role(self) -> bool:
        return bool(self._settings.service_role_key)

    def service(self) -> Client:
        """
        Client authenticated with the service-role key.

        Raises:
            ConnectionError: If no service-role key is configured
        """
        if self._service_client is None:
            if not self.has_service_role:
                raise ConnectionError("Supabase service role key is not configured")
            try:
                self._service_client = create_client(
                    self._settings.url,
                    self._settings.service_role_key,
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}") from e
        return self._service_client

    def table(self, name: str):
        return self.connect().table(name)

    def bucket(self, name: str):
        return self.connect().storage.from_(name)


class SupabaseExpenseStorage(ExpenseStorageInterface):
    """Expenses table. One row per expense, insert-only."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._table = self._client.settings.expenses_table

    async def insert_expense(self, expense: NewExpense) -> ExpenseRecord:
        row = expense.to_row()
        try:
            response = self._client.table(self._table).insert(row).execute()
        except (APIError, httpx.HTTPError) as e:
            raise StorageError(_api_message(e)) from e

        if response.data:
            return ExpenseRecord(**response.data[0])
        # Insert succeeded but the policy hid the returned row
        return ExpenseRecord(**row)

    async def list_expenses(
        self,
        user_id: str,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ExpenseRecord]:
        query = self._client.table(self._table).select("*").eq("user_id", user_id)
        if category:
            query = query.ilike("category", category)
        if start_date:
            query = query.gte("date", start_date.isoformat())
        if end_date:
            query = query.lte("date", end_date.isoformat())

        try:
            response = query.order("date", desc=True).execute()
        except (APIError, httpx.HTTPError) as e:
            raise StorageError(f"Failed to list expenses: {_api_message(e)}") from e

        return [ExpenseRecord(**row) for row in response.data or []]


class SupabaseReceiptStorage(ReceiptStorageInterface):
    """Receipt files in the bucket, indexed by rows in the receipts table."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._bucket = self._client.settings.receipts_bucket
        self._table = self._client.settings.receipts_table

    async def upload_file(self, path: str, content: bytes, content_type: str) -> str:
        try:
            self._client.bucket(self._bucket).upload(
                path,
                content,
                {"content-type": content_type},
            )
        except (StorageException, httpx.HTTPError) as e:
            raise StorageError(f"Failed to upload receipt: {e}") from e
        return path

    async def insert_index_row(self, path: str) -> Receipt:
        try:
            response = self._client.table(self._table).insert({"url": path}).execute()
        except (APIError, httpx.HTTPError) as e:
            raise StorageError(f"Failed to index receipt: {_api_message(e)}") from e

        row: dict[str, Any] = response.data[0] if response.data else {"url": path}
        return Receipt(**row, public_url=self.public_url(path))

    async def list_receipts(self, limit: int = 100) -> list[Receipt]:
        try:
            files = self._client.bucket(self._bucket).list(
                None,
                {"limit": limit, "sortBy": {"column": "created_at", "order": "desc"}},
            )
        except (StorageException, httpx.HTTPError) as e:
            raise StorageError(f"Failed to list receipts: {e}") from e

        receipts = []
        for item in files or []:
            name = item.get("name")
            if not name or name == PLACEHOLDER_FILE:
                continue
            receipts.append(Receipt(
                id=item.get("id"),
                url=name,
                uploaded_at=item.get("created_at"),
                public_url=self.public_url(name),
            ))
        return receipts

    async def delete_receipt(self, path: str) -> bool:
        try:
            removed = self._client.bucket(self._bucket).remove([path])
        except (StorageException, httpx.HTTPError) as e:
            raise StorageError(f"Failed to delete receipt: {e}") from e

        if not removed:
            raise NotFoundError(f"Receipt not found: {path}")

        try:
            self._client.table(self._table).delete().eq("url", path).execute()
        except (APIError, httpx.HTTPError) as e:
            raise StorageError(
                f"Receipt file removed but index row was not: {_api_message(e)}"
            ) from e
        return True

    def public_url(self, path: str) -> str:
        return self._client.bucket(self._bucket).get_public_url(path)


class SupabaseBudgetStorage(BudgetStorageInterface):
    """Budgets table: one allocation per category."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._table = self._client.settings.budgets_table

    async def list_budgets(self) -> list[BudgetAllocation]:
        try:
            response = self._client.table(self._table).select("*").order("id").execute()
        except (APIError, httpx.HTTPError) as e:
            raise StorageError(f"Failed to list budgets: {_api_message(e)}") from e
        return [BudgetAllocation(**row) for row in response.data or []]

    async def update_budget(
        self,
        budget_id: Union[int, str],
        budget: Decimal,
    ) -> BudgetAllocation:
        try:
            response = (
                self._client.table(self._table)
                .update({"budget": str(budget)})
                .eq("id", budget_id)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise StorageError(f"Failed to update budget: {_api_message(e)}") from e

        if not response.data:
            raise NotFoundError(f"Budget not found: {budget_id}")
        return BudgetAllocation(**response.data[0])
