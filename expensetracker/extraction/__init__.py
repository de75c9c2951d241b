"""Expense extraction package."""

from expensetracker.extraction.normalize import (
    CATEGORY_SYNONYMS,
    PAYMENT_METHOD_SYNONYMS,
    DateFormatError,
    detect_date_format,
    normalize_category,
    normalize_payment_method,
    parse_month_name_date,
    to_iso_date,
)
from expensetracker.extraction.pipeline import (
    ExpenseExtractor,
    build_expense,
    find_missing_fields,
    last_message_text,
    parse_model_output,
    strip_code_fences,
)
from expensetracker.extraction.prompts import REQUIRED_FIELDS, build_extraction_prompt

__all__ = [
    # Normalization
    "CATEGORY_SYNONYMS",
    "PAYMENT_METHOD_SYNONYMS",
    "DateFormatError",
    "detect_date_format",
    "normalize_category",
    "normalize_payment_method",
    "parse_month_name_date",
    "to_iso_date",
    # Pipeline
    "ExpenseExtractor",
    "build_expense",
    "find_missing_fields",
    "last_message_text",
    "parse_model_output",
    "strip_code_fences",
    # Prompts
    "REQUIRED_FIELDS",
    "build_extraction_prompt",
]
