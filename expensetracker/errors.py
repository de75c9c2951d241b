"""
Domain errors for Expense Tracker.

Every failure the application surfaces to a caller is one of these.
Each carries the HTTP status it maps to and a short machine-readable code,
so the API layer can render it as ``{"error": message}`` without
re-classifying anything.
"""

from typing import Any, Optional


class ExpenseTrackerError(Exception):
    """Base class for errors surfaced directly to the end user."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInput(ExpenseTrackerError):
    """Malformed request body (empty messages, missing user id, ...)."""

    status_code = 400
    code = "invalid_input"


class ExtractionFailed(ExpenseTrackerError):
    """The language model returned empty or unparseable text."""

    status_code = 400
    code = "extraction_failed"


class UpstreamUnavailable(ExtractionFailed):
    """The language model call itself raised (network, quota, timeout)."""

    status_code = 500
    code = "upstream_unavailable"


class IncompleteExtraction(ExpenseTrackerError):
    """Parsed model output is missing one or more required fields."""

    status_code = 400
    code = "incomplete_extraction"

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Missing required fields: {', '.join(self.missing_fields)}",
            details={"missing_fields": self.missing_fields},
        )


class PersistenceFailed(ExpenseTrackerError):
    """The remote backend rejected a write."""

    status_code = 500
    code = "persistence_failed"


class AuthRequired(ExpenseTrackerError):
    """Missing or invalid session / bearer token."""

    status_code = 401
    code = "auth_required"


class ConfigurationError(ExpenseTrackerError):
    """A required server-side secret or setting is missing."""

    status_code = 500
    code = "configuration_error"


class AuthServiceError(ExpenseTrackerError):
    """The auth service rejected an operation other than a token check."""

    status_code = 500
    code = "auth_service_error"
