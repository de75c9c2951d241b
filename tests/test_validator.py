"""Tests for the manual expense form and receipt upload checks."""

from datetime import date, timedelta

import pytest

from expensetracker.config import AppSettings
from expensetracker.validation import ExpenseValidator


def valid_form(**overrides):
    form = {
        "amount": "120.00",
        "currency": "INR",
        "category": "food",
        "date": "2025-03-20",
        "payment_method": "cash",
    }
    form.update(overrides)
    return form


@pytest.fixture
def validator():
    return ExpenseValidator(AppSettings(max_upload_size_mb=1, supported_receipt_formats="jpg,png,pdf"))


class TestManualExpense:
    """Tests for validate_manual_expense."""

    def test_valid_form(self, validator):
        result = validator.validate_manual_expense(valid_form())
        assert result.is_valid
        assert result.issues == []

    def test_missing_fields_reported_together(self, validator):
        result = validator.validate_manual_expense(valid_form(payment_method="", currency=None))
        assert result.has_errors
        assert result.missing_fields == ["currency", "payment_method"]
        assert "Payment method is required" in result.error_messages

    def test_amount_must_be_number(self, validator):
        result = validator.validate_manual_expense(valid_form(amount="twelve"))
        assert result.error_messages == ["Amount must be a number"]

    def test_amount_must_be_positive(self, validator):
        result = validator.validate_manual_expense(valid_form(amount="-5"))
        assert result.error_messages == ["Amount must be greater than zero"]

    def test_bad_date(self, validator):
        result = validator.validate_manual_expense(valid_form(date="20/03/2025"))
        assert result.has_errors

    def test_date_object_accepted(self, validator):
        assert validator.validate_manual_expense(valid_form(date=date(2025, 3, 20))).is_valid

    def test_future_date_is_warning(self, validator):
        """Future dates warn but do not block the insert."""
        future = (date.today() + timedelta(days=10)).isoformat()
        result = validator.validate_manual_expense(valid_form(date=future))
        assert result.is_valid
        assert [i.issue_type for i in result.issues] == ["future_date"]

    def test_unknown_category_and_method_are_warnings(self, validator):
        result = validator.validate_manual_expense(valid_form(category="Pets", payment_method="PayPal"))
        assert result.is_valid
        assert {i.field for i in result.issues} == {"category", "payment_method"}
        assert all(i.severity == "warning" for i in result.issues)

    def test_friendly_summary(self, validator):
        result = validator.validate_manual_expense(valid_form(amount="0", category=""))
        summary = validator.get_user_friendly_summary(result)
        assert "Category is required" in summary
        assert "Amount must be greater than zero" in summary


class TestReceiptUpload:
    """Tests for validate_receipt_upload."""

    def test_accepted_file(self, validator):
        assert validator.validate_receipt_upload("lunch.JPG", 2048).is_valid

    def test_unsupported_format(self, validator):
        result = validator.validate_receipt_upload("notes.txt", 10)
        assert [i.issue_type for i in result.issues] == ["unsupported_format"]

    def test_empty_file(self, validator):
        result = validator.validate_receipt_upload("scan.pdf", 0)
        assert [i.issue_type for i in result.issues] == ["empty"]

    def test_too_large(self, validator):
        result = validator.validate_receipt_upload("scan.png", 2 * 1024 * 1024)
        assert [i.issue_type for i in result.issues] == ["too_large"]

    def test_no_file(self, validator):
        result = validator.validate_receipt_upload("", 10)
        assert result.missing_fields == ["file"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
