"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Supabase (Postgres tables plus the receipts bucket) is the backend.
"""

from expensetracker.services.storage.interface import (
    BudgetStorageInterface,
    ConnectionError,
    ExpenseStorageInterface,
    NotFoundError,
    ReceiptStorageInterface,
    StorageError,
)
from expensetracker.services.storage.supabase_store import (
    SupabaseBudgetStorage,
    SupabaseClient,
    SupabaseExpenseStorage,
    SupabaseReceiptStorage,
)

__all__ = [
    # Interfaces
    "BudgetStorageInterface",
    "ExpenseStorageInterface",
    "ReceiptStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Supabase implementation
    "SupabaseBudgetStorage",
    "SupabaseClient",
    "SupabaseExpenseStorage",
    "SupabaseReceiptStorage",
]
