"""
Tests for Expense Tracker models

Test strategy:
1. Unit tests for individual components (models, errors, audit events)
2. Integration tests for flows live in test_orchestrator and test_api
3. No real API calls in tests (use fakes)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from expensetracker.errors import (
    ExpenseTrackerError,
    ExtractionFailed,
    IncompleteExtraction,
    UpstreamUnavailable,
)
from expensetracker.models.expense import (
    BudgetAllocation,
    DashboardSummary,
    ExpenseCategory,
    ExpenseRecord,
    NewExpense,
    PaymentMethod,
    ValidationIssue,
    ValidationResult,
)
from expensetracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_new_expense_creation(self):
        """Test NewExpense model creation."""
        expense = NewExpense(
            user_id="u1",
            amount=Decimal("250"),
            currency="inr",
            category="food",
            date=date(2025, 3, 20),
            payment_method="cash",
        )
        assert expense.currency == "INR"
        assert expense.amount == Decimal("250")

    def test_new_expense_float_amount_kept_exact(self):
        """Floats go through str() so 0.1 stays 0.1."""
        expense = NewExpense(
            user_id="u1", amount=0.1, currency="USD", category="food",
            date=date(2025, 3, 20), payment_method="cash",
        )
        assert expense.amount == Decimal("0.1")

    def test_new_expense_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            NewExpense(
                user_id="u1", amount=Decimal("-1"), currency="INR",
                category="food", date=date(2025, 3, 20), payment_method="cash",
            )

    def test_new_expense_requires_user(self):
        with pytest.raises(ValueError):
            NewExpense(
                user_id="", amount=Decimal("1"), currency="INR",
                category="food", date=date(2025, 3, 20), payment_method="cash",
            )

    def test_to_row(self):
        """Test conversion to the backend row."""
        row = NewExpense(
            user_id="u1", amount="250", currency="INR", category="food",
            date=date(2025, 3, 20), payment_method="cash",
        ).to_row()
        assert row == {
            "user_id": "u1",
            "amount": "250",
            "currency": "INR",
            "category": "food",
            "date": "2025-03-20",
            "payment_method": "cash",
        }

    def test_record_ignores_extra_columns(self):
        record = ExpenseRecord(
            id=3, user_id="u1", amount="9.99", category="food",
            date="2025-03-20", inserted_by="trigger",
        )
        assert record.currency == "INR"
        assert not hasattr(record, "inserted_by")

    def test_dashboard_remaining(self):
        summary = DashboardSummary(
            budgets=[BudgetAllocation(id=1, category="food", budget=Decimal("100"))],
            total_budget=Decimal("100"),
            total_spent=Decimal("130"),
        )
        assert summary.remaining == Decimal("-30")

    def test_budget_cannot_be_negative(self):
        with pytest.raises(ValueError):
            BudgetAllocation(id=1, category="food", budget=Decimal("-5"))


class TestCategories:
    """Tests for the canonical enums."""

    def test_all_categories_exist(self):
        """Test that expected categories exist."""
        for cat in ["food", "housing", "transportation", "entertainment", "other"]:
            assert ExpenseCategory(cat) is not None

    def test_payment_method_values(self):
        assert PaymentMethod.CREDIT_CARD.value == "credit card"
        assert PaymentMethod.CREDIT_CARD.label == "Credit Card"


class TestErrors:
    """Tests for domain error status codes."""

    def test_incomplete_extraction_message(self):
        error = IncompleteExtraction(["currency", "payment_method"])
        assert error.message == "Missing required fields: currency, payment_method"
        assert error.details == {"missing_fields": ["currency", "payment_method"]}
        assert error.status_code == 400

    def test_upstream_is_extraction_failure_with_500(self):
        error = UpstreamUnavailable("AI service error: timeout")
        assert isinstance(error, ExtractionFailed)
        assert isinstance(error, ExpenseTrackerError)
        assert error.status_code == 500
        assert ExtractionFailed("x").status_code == 400


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            description="Receipt uploaded",
        )
        assert event.event_type == AuditEventType.RECEIPT_UPLOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            description="Expense saved",
            details={"category": "food", "amount": "250"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_saved"
        assert log_dict["details"]["category"] == "food"

    def test_builder_extraction_incomplete(self):
        """Test AuditEventBuilder.extraction_incomplete."""
        correlation_id = uuid4()
        event = AuditEventBuilder.extraction_incomplete(
            user_id="u1",
            missing_fields=["payment_method"],
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.EXTRACTION_INCOMPLETE
        assert event.severity == AuditSeverity.WARNING
        assert event.details["missing_fields"] == ["payment_method"]
        assert event.correlation_id == correlation_id

    def test_builder_expense_saved(self):
        """Test AuditEventBuilder.expense_saved."""
        event = AuditEventBuilder.expense_saved(
            expense_id="7",
            user_id="u1",
            amount="250",
            currency="INR",
            category="food",
            correlation_id=None,
        )
        assert event.entity_id == "7"
        assert event.description == "Expense saved: 250 INR (food)"

    def test_builder_password_reset_is_user_action(self):
        event = AuditEventBuilder.password_reset_requested("a@b.com", "http://h/reset-password")
        assert event.is_user_action is True
        assert event.details["redirect_to"] == "http://h/reset-password"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ),
        ])
        assert result.has_errors is True
        assert result.missing_fields == ["amount"]

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="date",
                issue_type="future_date",
                message="Date in future",
                severity="warning",
            ),
        ])
        assert result.has_errors is False
        assert result.error_messages == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
