"""Prompt text sent to the language model for expense extraction."""

from datetime import date

from expensetracker.models.expense import ExpenseCategory, PaymentMethod


REQUIRED_FIELDS = ("amount", "currency", "category", "date", "payment_method")


def build_extraction_prompt(message: str, today: date) -> str:
    """Build the single-shot extraction prompt for one chat message."""
    categories = ", ".join(c.value for c in ExpenseCategory)
    payment_methods = ", ".join(p.value for p in PaymentMethod)

    return f"""You are extracting a single expense from a message written by the user of a personal expense tracker.

Today's date is {today.strftime('%d-%m-%Y')}.

Message: "{message}"

Return a JSON object with exactly these fields:
- amount: the amount spent, as a number without currency symbols
- currency: ISO 4217 currency code (e.g. INR, USD, EUR)
- category: one of [{categories}]
- date: the date of the expense in DD-MM-YYYY format. Resolve words like "today" or "yesterday" against today's date.
- payment_method: one of [{payment_methods}]

If a field cannot be determined from the message, set it to null. Do not guess.

Example:
"spent 20-03-2025 lunch 250 INR cash" ->
{{"amount": "250", "currency": "INR", "category": "food", "date": "20-03-2025", "payment_method": "cash"}}

Respond with ONLY the JSON object, no explanation."""
