"""Services package."""

from expensetracker.services.auth import AuthServiceInterface, SupabaseAuthService
from expensetracker.services.chat_history import ChatHistoryStore, InMemoryChatHistoryStore
from expensetracker.services.realtime import ChangeFeed, QueueChangeFeed, SupabaseChangeFeed
from expensetracker.services.storage import (
    BudgetStorageInterface,
    ConnectionError,
    ExpenseStorageInterface,
    NotFoundError,
    ReceiptStorageInterface,
    StorageError,
    SupabaseBudgetStorage,
    SupabaseClient,
    SupabaseExpenseStorage,
    SupabaseReceiptStorage,
)

__all__ = [
    # Auth
    "AuthServiceInterface",
    "SupabaseAuthService",
    # Chat history
    "ChatHistoryStore",
    "InMemoryChatHistoryStore",
    # Realtime
    "ChangeFeed",
    "QueueChangeFeed",
    "SupabaseChangeFeed",
    # Storage services
    "BudgetStorageInterface",
    "ConnectionError",
    "ExpenseStorageInterface",
    "NotFoundError",
    "ReceiptStorageInterface",
    "StorageError",
    "SupabaseBudgetStorage",
    "SupabaseClient",
    "SupabaseExpenseStorage",
    "SupabaseReceiptStorage",
]
