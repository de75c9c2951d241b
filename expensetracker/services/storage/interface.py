"""
Abstract Storage Interface

DESIGN DECISION: Business logic talks to these interfaces, never to the
backend client directly. This allows us to:
1. Inject the backend client instead of importing a module-level singleton
2. Use in-memory storage for testing
3. Keep the extraction pipeline decoupled from the backend

The interface is intentionally small - we're not building an ORM.
Expenses are insert-only; budgets are update-only; receipts are
upload/list/delete.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from expensetracker.models.expense import (
    BudgetAllocation,
    ExpenseRecord,
    NewExpense,
    Receipt,
)


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense rows.

    There is no update or delete: an expense is never mutated once written.
    """

    @abstractmethod
    async def insert_expense(self, expense: NewExpense) -> ExpenseRecord:
        """
        Insert one expense row.

        Args:
            expense: The expense to insert

        Returns:
            The row as stored by the backend

        Raises:
            StorageError: If the backend rejects the insert
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        user_id: str,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ExpenseRecord]:
        """
        List a user's expenses, newest first.

        Args:
            user_id: Owner of the rows
            category: Filter by category, matched case-insensitively
            start_date: Rows on or after this date
            end_date: Rows on or before this date

        Returns:
            Matching expenses ordered by date descending
        """
        pass


class ReceiptStorageInterface(ABC):
    """Receipt files in the bucket plus their index rows."""

    @abstractmethod
    async def upload_file(self, path: str, content: bytes, content_type: str) -> str:
        """
        Store a file in the receipts bucket.

        Returns:
            The stored path

        Raises:
            StorageError: If the upload fails
        """
        pass

    @abstractmethod
    async def insert_index_row(self, path: str) -> Receipt:
        """Insert the ``{url: path}`` row for an uploaded file."""
        pass

    @abstractmethod
    async def list_receipts(self, limit: int = 100) -> list[Receipt]:
        """List stored receipts with their public URLs."""
        pass

    @abstractmethod
    async def delete_receipt(self, path: str) -> bool:
        """
        Remove the stored file and its index row.

        Raises:
            NotFoundError: If no file exists at ``path``
        """
        pass

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Public URL for a stored path."""
        pass


class BudgetStorageInterface(ABC):
    """Budget allocations. Read and updated in place; never created or deleted."""

    @abstractmethod
    async def list_budgets(self) -> list[BudgetAllocation]:
        pass

    @abstractmethod
    async def update_budget(
        self,
        budget_id: Union[int, str],
        budget: Decimal,
    ) -> BudgetAllocation:
        """
        Set the allocated amount for one budget row.

        Raises:
            NotFoundError: If no row has ``budget_id``
            StorageError: If the update fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
