"""
Core Data Models for Expense Tracker

These models define the schemas for everything read from or written to the
remote backend. They are designed to:
1. Enforce type safety at runtime
2. Keep money as Decimal end to end
3. Serialize to plain JSON rows for the backend client

DESIGN DECISION: Category and payment method on a stored row are plain
strings, not enums. The extraction pipeline passes unmapped values through
unchanged, so the row schema must accept them. The enums below define the
canonical values the application itself offers.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Canonical values
# =============================================================================

class ExpenseCategory(str, Enum):
    """Canonical expense categories."""
    FOOD = "food"
    HOUSING = "housing"
    TRANSPORTATION = "transportation"
    ENTERTAINMENT = "entertainment"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.title()


class PaymentMethod(str, Enum):
    """Canonical payment methods."""
    CASH = "cash"
    BANK = "bank"
    CREDIT_CARD = "credit card"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.title()


class ChangeType(str, Enum):
    """Row change kinds delivered by the realtime channel."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# =============================================================================
# CHAT
# =============================================================================

class ChatMessage(BaseModel):
    """One chat turn as sent by the chat box."""

    role: str = Field(..., description="Who sent the turn: user or ai")
    content: str = Field(default="", description="Text of the turn")


# =============================================================================
# EXPENSES
# =============================================================================

class NewExpense(BaseModel):
    """
    An expense about to be inserted.

    Built either from the manual form or from the extraction pipeline.
    ``user_id`` is mandatory: no row is written without an owner.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, description="Amount in the given currency")
    currency: str = Field(..., min_length=1, max_length=10)
    category: str = Field(..., min_length=1, max_length=100)
    date: date
    payment_method: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        if isinstance(v, float):
            v = str(v)
        return v

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    def to_row(self) -> dict[str, Any]:
        """Convert to the JSON row sent to the backend."""
        row = {
            "user_id": self.user_id,
            "amount": str(self.amount),
            "currency": self.currency,
            "category": self.category,
            "date": self.date.isoformat(),
            "payment_method": self.payment_method,
        }
        if self.description:
            row["description"] = self.description
        return row


class ExpenseRecord(BaseModel):
    """An expense row as returned by the backend."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    user_id: str
    amount: Decimal
    currency: str = "INR"
    category: str
    date: date
    payment_method: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class ExpenseTotal(BaseModel):
    """Total spend over a filtered set of expenses."""

    total: Decimal = Decimal("0")
    currency: str = Field(
        default="unknown currency",
        description="Most common currency among the summed rows"
    )
    count: int = Field(default=0, ge=0)


class CategorySummary(BaseModel):
    """Spend for one category within a listing."""

    category: str
    total: Decimal
    count: int = Field(ge=0)
    percentage: float = Field(ge=0.0, le=100.0)


class DateRange(BaseModel):
    """Inclusive calendar range."""

    start_date: date
    end_date: date


# =============================================================================
# RECEIPTS & BUDGETS
# =============================================================================

class Receipt(BaseModel):
    """A stored receipt file and its index row."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    url: str = Field(..., min_length=1, description="Path in the receipts bucket")
    uploaded_at: Optional[datetime] = None
    public_url: Optional[str] = None


class BudgetAllocation(BaseModel):
    """Budget allocated to one category."""
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    category: str
    budget: Decimal = Field(default=Decimal("0"), ge=0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'too_large')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one input."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def missing_fields(self) -> list[str]:
        return [i.field for i in self.issues if i.issue_type == "missing"]

    @property
    def error_messages(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "error"]


# =============================================================================
# REALTIME
# =============================================================================

class ExpenseChangeEvent(BaseModel):
    """A row change pushed by the backend's realtime channel."""

    event_type: ChangeType
    table: str
    record: dict[str, Any] = Field(default_factory=dict)
    old_record: dict[str, Any] = Field(default_factory=dict)
    received_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# DASHBOARD
# =============================================================================

class DashboardSummary(BaseModel):
    """Budgets next to actual spend, for the dashboard charts."""

    budgets: list[BudgetAllocation] = Field(default_factory=list)
    total_budget: Decimal = Decimal("0")
    spent_by_category: dict[str, Decimal] = Field(default_factory=dict)
    total_spent: Decimal = Decimal("0")

    @property
    def remaining(self) -> Decimal:
        return self.total_budget - self.total_spent
