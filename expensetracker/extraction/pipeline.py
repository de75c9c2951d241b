"""
Expense Extraction Pipeline

Turns the last chat message into one stored expense:

    message -> model -> strip fences -> JSON -> required fields
            -> normalize -> insert

CRITICAL BOUNDARIES:
- The model is called once per request. No retry, no streaming.
- Nothing is written unless every stage before the insert succeeded.
- Exactly one insert per successful call; the insert is never retried.
- Every failure is raised as a typed ExpenseTrackerError naming the stage.

The pipeline never reads or writes chat history.
"""

import json
import re
from datetime import date
from typing import Any, Callable, Optional, Sequence, Union
from uuid import UUID

from pydantic import ValidationError

from expensetracker.agents.gemini import TextGenerator
from expensetracker.audit.logger import AuditLogger, create_correlation_id
from expensetracker.errors import (
    ExtractionFailed,
    IncompleteExtraction,
    InvalidInput,
    PersistenceFailed,
    UpstreamUnavailable,
)
from expensetracker.extraction.normalize import (
    DateFormatError,
    normalize_category,
    normalize_payment_method,
    to_iso_date,
)
from expensetracker.extraction.prompts import REQUIRED_FIELDS, build_extraction_prompt
from expensetracker.models.expense import ChatMessage, ExpenseRecord, NewExpense
from expensetracker.services.storage.interface import ExpenseStorageInterface, StorageError


_FENCE_OPEN = re.compile(r"^```[a-zA-Z0-9_-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def last_message_text(messages: Sequence[Union[ChatMessage, dict]]) -> str:
    """Content of the last chat turn. Raises InvalidInput on an empty sequence."""
    if not messages:
        raise InvalidInput("No messages provided")

    last = messages[-1]
    content = last.get("content") if isinstance(last, dict) else last.content
    return (content or "").strip()


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) block."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_model_output(text: str) -> dict[str, Any]:
    """
    Parse model text into a JSON object.

    Raises ExtractionFailed on blank text, invalid JSON, a non-object
    value or an empty object.
    """
    cleaned = strip_code_fences(text or "")
    if not cleaned:
        raise ExtractionFailed("Failed to extract expense data: empty response from AI")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionFailed(f"Failed to extract expense data: invalid JSON ({e.msg})") from e

    if not isinstance(data, dict) or not data:
        raise ExtractionFailed("Failed to extract expense data: no expense found in AI response")
    return data


def find_missing_fields(data: dict[str, Any]) -> list[str]:
    """Required fields that are absent, null or blank, in declaration order."""
    missing = []
    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field)
    return missing


def build_expense(data: dict[str, Any], user_id: str) -> NewExpense:
    """
    Normalize parsed fields and build the row to insert.

    Assumes ``find_missing_fields(data)`` is empty.
    """
    try:
        iso_date = to_iso_date(data["date"])
    except DateFormatError as e:
        raise ExtractionFailed(f"Failed to extract expense data: {e}") from e

    try:
        return NewExpense(
            user_id=user_id,
            amount=data["amount"],
            currency=str(data["currency"]),
            category=normalize_category(data["category"]),
            date=iso_date,
            payment_method=normalize_payment_method(data["payment_method"]),
        )
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise ExtractionFailed(f"Failed to extract expense data: invalid {fields}") from e


class ExpenseExtractor:
    """
    Runs the extraction pipeline for one request at a time.

    Stateless between calls; the text generator and storage are injected.
    """

    def __init__(
        self,
        generator: TextGenerator,
        expense_storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._generator = generator
        self._storage = expense_storage
        self._audit = audit_logger or AuditLogger()
        self._today = today

    async def extract(
        self,
        messages: Sequence[Union[ChatMessage, dict]],
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseRecord:
        """
        Extract one expense from the last message and store it.

        Raises:
            InvalidInput: No messages, blank last message or no user id
            UpstreamUnavailable: The model call raised
            ExtractionFailed: Model output unusable
            IncompleteExtraction: Required fields missing
            PersistenceFailed: The backend rejected the insert
        """
        correlation_id = correlation_id or create_correlation_id()

        if not user_id or not str(user_id).strip():
            raise InvalidInput("User ID is required")
        text = last_message_text(messages)
        if not text:
            raise InvalidInput("Last message is empty")

        await self._audit.log_extraction_requested(
            user_id=user_id,
            message_count=len(messages),
            correlation_id=correlation_id,
        )

        prompt = build_extraction_prompt(text, self._today())
        try:
            raw = await self._generator.generate(prompt)
        except Exception as e:
            await self._audit.log_external_service_error(
                service="gemini",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise UpstreamUnavailable(f"AI service error: {e}") from e

        try:
            data = parse_model_output(raw)
        except ExtractionFailed as e:
            await self._audit.log_extraction_failed(user_id, e.message, correlation_id)
            raise

        missing = find_missing_fields(data)
        if missing:
            await self._audit.log_extraction_incomplete(user_id, missing, correlation_id)
            raise IncompleteExtraction(missing)

        try:
            expense = build_expense(data, user_id)
        except ExtractionFailed as e:
            await self._audit.log_extraction_failed(user_id, e.message, correlation_id)
            raise

        try:
            record = await self._storage.insert_expense(expense)
        except StorageError as e:
            await self._audit.log_persistence_failed(
                user_id=user_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise PersistenceFailed(f"Failed to add expense: {e}") from e

        await self._audit.log_expense_saved(
            expense_id=str(record.id) if record.id is not None else None,
            user_id=user_id,
            amount=str(record.amount),
            currency=record.currency,
            category=record.category,
            correlation_id=correlation_id,
        )
        return record
