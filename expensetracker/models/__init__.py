"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing to and from the backend must conform to these schemas.
"""

from expensetracker.models.expense import (
    BudgetAllocation,
    CategorySummary,
    ChangeType,
    ChatMessage,
    DashboardSummary,
    DateRange,
    ExpenseCategory,
    ExpenseChangeEvent,
    ExpenseRecord,
    ExpenseTotal,
    NewExpense,
    PaymentMethod,
    Receipt,
    ValidationIssue,
    ValidationResult,
)
from expensetracker.models.user import AuthSession, AuthUser
from expensetracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "BudgetAllocation",
    "CategorySummary",
    "ChangeType",
    "ChatMessage",
    "DashboardSummary",
    "DateRange",
    "ExpenseCategory",
    "ExpenseChangeEvent",
    "ExpenseRecord",
    "ExpenseTotal",
    "NewExpense",
    "PaymentMethod",
    "Receipt",
    "ValidationIssue",
    "ValidationResult",
    # Auth models
    "AuthSession",
    "AuthUser",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
