"""
Audit Models for Expense Tracker

Every significant action in the system is logged for audit purposes:
each extraction attempt, every write to the backend, receipt and budget
changes, and authentication flows.

DESIGN DECISION: Audit events are immutable once built. They are emitted
as structured log lines and never modified afterwards.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Extraction pipeline
    EXTRACTION_REQUESTED = "extraction_requested"
    EXTRACTION_FAILED = "extraction_failed"
    EXTRACTION_INCOMPLETE = "extraction_incomplete"

    # Persistence
    EXPENSE_SAVED = "expense_saved"
    PERSISTENCE_FAILED = "persistence_failed"

    # Receipts and budgets
    RECEIPT_UPLOADED = "receipt_uploaded"
    RECEIPT_DELETED = "receipt_deleted"
    BUDGET_UPDATED = "budget_updated"

    # Auth
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_UPDATED = "password_updated"
    AUTH_FAILED = "auth_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'receipt', 'budget')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Backend identifier of the entity"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Owning user, when known"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.extraction_requested(user_id, correlation_id)
        event = AuditEventBuilder.expense_saved(expense_id, user_id, ...)
    """

    @staticmethod
    def extraction_requested(
        user_id: str,
        message_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_REQUESTED,
            entity_type="extraction",
            user_id=user_id,
            correlation_id=correlation_id,
            description="Expense extraction requested from chat input",
            details={"message_count": message_count},
            is_user_action=True,
        )

    @staticmethod
    def extraction_failed(
        user_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="extraction",
            user_id=user_id,
            correlation_id=correlation_id,
            description="Model output could not be used",
            error_message=reason,
        )

    @staticmethod
    def extraction_incomplete(
        user_id: str,
        missing_fields: list[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_INCOMPLETE,
            severity=AuditSeverity.WARNING,
            entity_type="extraction",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Extraction missing {len(missing_fields)} field(s)",
            details={"missing_fields": missing_fields},
        )

    @staticmethod
    def expense_saved(
        expense_id: Optional[str],
        user_id: str,
        amount: str,
        currency: str,
        category: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            entity_type="expense",
            entity_id=expense_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense saved: {amount} {currency} ({category})",
            details={
                "amount": amount,
                "currency": currency,
                "category": category,
            },
        )

    @staticmethod
    def persistence_failed(
        user_id: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="expense",
            user_id=user_id,
            correlation_id=correlation_id,
            description="Backend rejected expense insert",
            error_message=error_message,
        )

    @staticmethod
    def receipt_uploaded(
        path: str,
        file_size: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            entity_type="receipt",
            entity_id=path,
            correlation_id=correlation_id,
            description=f"Receipt uploaded: {path}",
            details={"file_size_bytes": file_size},
            is_user_action=True,
        )

    @staticmethod
    def receipt_deleted(
        path: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_DELETED,
            entity_type="receipt",
            entity_id=path,
            correlation_id=correlation_id,
            description=f"Receipt deleted: {path}",
            is_user_action=True,
        )

    @staticmethod
    def budget_updated(
        budget_id: str,
        category: str,
        budget: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            entity_id=budget_id,
            description=f"Budget for {category} set to {budget}",
            details={"category": category, "budget": budget},
            is_user_action=True,
        )

    @staticmethod
    def password_reset_requested(
        email: str,
        redirect_to: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET_REQUESTED,
            entity_type="user",
            description="Password reset email requested",
            details={"email": email, "redirect_to": redirect_to},
            is_user_action=True,
        )

    @staticmethod
    def password_updated(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_UPDATED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description="Password updated",
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description="Authentication failed",
            error_message=reason,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
