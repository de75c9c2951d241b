"""
Input Validation

DESIGN DECISION: Inputs that come from people (the expense form and
receipt uploads) are checked before anything reaches the backend:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Positive amount, parseable date

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Unknown category or payment method

IMPORTANT: Validation NEVER silently fixes issues.
It reports them, and the caller decides whether to proceed.
Model output from the chat box is validated by the extraction
pipeline itself, not here.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import PurePath
from typing import Any, Optional

from expensetracker.config import AppSettings, get_settings
from expensetracker.models.expense import (
    ExpenseCategory,
    PaymentMethod,
    ValidationIssue,
    ValidationResult,
)


FORM_REQUIRED_FIELDS = ("amount", "currency", "category", "date", "payment_method")


class ExpenseValidator:
    """Validates the manual expense form and receipt uploads."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def check_required_fields(self, data: dict[str, Any]) -> list[ValidationIssue]:
        """Report every required form field that is absent or blank."""
        issues = []
        for field in FORM_REQUIRED_FIELDS:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field.replace('_', ' ').capitalize()} is required",
                ))
        return issues

    def _validate_schema(self, data: dict[str, Any]) -> list[ValidationIssue]:
        issues = self.check_required_fields(data)
        missing = {issue.field for issue in issues}

        if "amount" not in missing:
            try:
                amount = Decimal(str(data["amount"]))
            except InvalidOperation:
                amount = None
            if amount is None or not amount.is_finite():
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be a number",
                ))
            elif amount <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                ))

        if "date" not in missing and not isinstance(data["date"], date):
            try:
                date.fromisoformat(str(data["date"]))
            except ValueError:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_value",
                    message="Date must be in YYYY-MM-DD format",
                ))
        return issues

    def _validate_semantic(self, data: dict[str, Any]) -> list[ValidationIssue]:
        issues = []

        expense_date = data.get("date")
        if isinstance(expense_date, str):
            try:
                expense_date = date.fromisoformat(expense_date)
            except ValueError:
                expense_date = None
        # One day of tolerance for time zones
        if isinstance(expense_date, date) and expense_date > date.today() + timedelta(days=1):
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Expense date ({expense_date}) is in the future",
                severity="warning",
            ))

        categories = {c.value for c in ExpenseCategory}
        if str(data.get("category", "")).strip().lower() not in categories:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_value",
                message=f"Unknown category: {data.get('category')}",
                severity="warning",
            ))

        methods = {m.value for m in PaymentMethod}
        if str(data.get("payment_method", "")).strip().lower() not in methods:
            issues.append(ValidationIssue(
                field="payment_method",
                issue_type="unknown_value",
                message=f"Unknown payment method: {data.get('payment_method')}",
                severity="warning",
            ))
        return issues

    def validate_manual_expense(self, data: dict[str, Any]) -> ValidationResult:
        """
        Validate a form submission.

        Semantic checks only run once the schema checks pass.
        """
        issues = self._validate_schema(data)
        if not any(issue.severity == "error" for issue in issues):
            issues.extend(self._validate_semantic(data))
        return ValidationResult(issues=issues)

    def validate_receipt_upload(self, filename: str, size: int) -> ValidationResult:
        """Check a receipt file's extension and size against configuration."""
        issues = []

        extension = PurePath(filename or "").suffix.lower().lstrip(".")
        if not filename or not filename.strip():
            issues.append(ValidationIssue(
                field="file",
                issue_type="missing",
                message="Please select a file to upload",
            ))
        elif extension not in self._settings.supported_formats_list:
            issues.append(ValidationIssue(
                field="file",
                issue_type="unsupported_format",
                message=(
                    f"Unsupported file type '.{extension}'. Allowed: "
                    f"{', '.join(self._settings.supported_formats_list)}"
                ),
            ))

        if size <= 0:
            issues.append(ValidationIssue(
                field="file",
                issue_type="empty",
                message="The selected file is empty",
            ))
        elif size > self._settings.max_upload_size_bytes:
            issues.append(ValidationIssue(
                field="file",
                issue_type="too_large",
                message=f"File is larger than {self._settings.max_upload_size_mb} MB",
            ))

        return ValidationResult(issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One message per line, errors first."""
        if not result.issues:
            return "✅ All checks passed!"

        lines = [f"❌ {issue.message}" for issue in result.issues if issue.severity == "error"]
        lines += [f"⚠️ {issue.message}" for issue in result.issues if issue.severity == "warning"]
        return "\n".join(lines)
