"""
Normalization of model-extracted expense fields.

DESIGN DECISION: Category and payment-method mapping are closed lookup
tables with an explicit fallback policy: a value found in the table (after
case folding) becomes its canonical form, anything else is passed through
exactly as received. Nothing is rejected here.

Dates have two helpers. ``to_iso_date`` is the one the extraction pipeline
uses; ``parse_month_name_date`` understands "20 March 2025" style input and
is kept separate on purpose until the accepted input formats are settled.
"""

import re
from datetime import date
from typing import Any, Optional

from expensetracker.models.expense import ExpenseCategory, PaymentMethod


# Raw category (lower-cased) -> canonical category. Closed table.
CATEGORY_SYNONYMS: dict[str, str] = {
    "food": ExpenseCategory.FOOD.value,
    "groceries": ExpenseCategory.FOOD.value,
    "dining": ExpenseCategory.FOOD.value,
    "restaurant": ExpenseCategory.FOOD.value,
    "snacks": ExpenseCategory.FOOD.value,
}

# Raw payment method (lower-cased) -> canonical payment method. Closed table.
PAYMENT_METHOD_SYNONYMS: dict[str, str] = {
    "cash": PaymentMethod.CASH.value,
    "bank": PaymentMethod.BANK.value,
    "bank transfer": PaymentMethod.BANK.value,
    "net banking": PaymentMethod.BANK.value,
    "netbanking": PaymentMethod.BANK.value,
    "upi": PaymentMethod.BANK.value,
    "debit card": PaymentMethod.BANK.value,
    "credit card": PaymentMethod.CREDIT_CARD.value,
    "credit": PaymentMethod.CREDIT_CARD.value,
    "cc": PaymentMethod.CREDIT_CARD.value,
    "other": PaymentMethod.OTHER.value,
}

MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
}

_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_MONTHNAME_YEAR = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)?\s+([a-z]+)\.?,?\s+(\d{4})$")
_MONTHNAME_DAY_YEAR = re.compile(r"^([a-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})$")


class DateFormatError(ValueError):
    """A date string is not in a supported format."""


def _lookup(table: dict[str, str], raw: Any) -> str:
    value = raw if isinstance(raw, str) else str(raw)
    return table.get(value.strip().lower(), value)


def normalize_category(raw: Any) -> str:
    """Fold a raw category into its canonical form, or return it unchanged."""
    return _lookup(CATEGORY_SYNONYMS, raw)


def normalize_payment_method(raw: Any) -> str:
    """Fold a raw payment method into its canonical form, or return it unchanged."""
    return _lookup(PAYMENT_METHOD_SYNONYMS, raw)


def to_iso_date(raw: Any) -> str:
    """
    Rewrite a ``DD-MM-YYYY`` date as ``YYYY-MM-DD``.

    A value already in ``YYYY-MM-DD`` form is returned as is.
    Anything else raises DateFormatError.
    """
    text = str(raw).strip()

    match = _DAY_MONTH_YEAR.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
    else:
        match = _ISO_DATE.match(text)
        if not match:
            raise DateFormatError(f"Unsupported date format: {text!r} (expected DD-MM-YYYY)")
        year, month, day = (int(part) for part in match.groups())

    try:
        return date(year, month, day).isoformat()
    except ValueError as e:
        raise DateFormatError(f"Invalid calendar date: {text!r} ({e})") from e


def _month_number(name: str) -> Optional[int]:
    name = name.lower()
    if name in MONTHS:
        return MONTHS[name]
    # Three-letter (or longer) prefixes: "mar", "sept"
    if len(name) >= 3:
        for month_name, number in MONTHS.items():
            if month_name.startswith(name):
                return number
    return None


def parse_month_name_date(text: str) -> Optional[str]:
    """
    Parse dates written with a month name.

    Accepts "20 March 2025", "20th Mar 2025", "March 20, 2025" and
    "Mar 20 2025". Returns the ISO string, or None when the text does not
    match or names an impossible date.
    """
    cleaned = " ".join(text.strip().lower().split())

    match = _DAY_MONTHNAME_YEAR.match(cleaned)
    if match:
        day, month_name, year = match.groups()
    else:
        match = _MONTHNAME_DAY_YEAR.match(cleaned)
        if not match:
            return None
        month_name, day, year = match.groups()

    month = _month_number(month_name)
    if month is None:
        return None

    try:
        return date(int(year), month, int(day)).isoformat()
    except ValueError:
        return None


def detect_date_format(text: str) -> Optional[str]:
    """
    Name the format of a date string.

    Returns "dd-mm-yyyy", "iso", "month-name" or None.
    """
    cleaned = text.strip()
    if _DAY_MONTH_YEAR.match(cleaned):
        return "dd-mm-yyyy"
    if _ISO_DATE.match(cleaned):
        return "iso"
    if parse_month_name_date(cleaned) is not None:
        return "month-name"
    return None
