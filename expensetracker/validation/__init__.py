"""Validation package."""

from expensetracker.validation.validator import FORM_REQUIRED_FIELDS, ExpenseValidator

__all__ = ["FORM_REQUIRED_FIELDS", "ExpenseValidator"]
