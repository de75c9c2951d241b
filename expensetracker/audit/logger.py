"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of each extraction request
2. Operator visibility into upstream and backend failures
3. Correlation IDs that tie one request's events together
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expensetracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib logging (and therefore structlog) to stdout at ``level``."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Emits every AuditEvent as one JSON log line, at the level matching
    the event's severity.
    """

    def __init__(self, logger_name: str = "expensetracker.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    async def log_extraction_requested(
        self,
        user_id: str,
        message_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_requested(
            user_id=user_id,
            message_count=message_count,
            correlation_id=correlation_id,
        ))

    async def log_extraction_failed(
        self,
        user_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_failed(
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_extraction_incomplete(
        self,
        user_id: str,
        missing_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_incomplete(
            user_id=user_id,
            missing_fields=missing_fields,
            correlation_id=correlation_id,
        ))

    async def log_expense_saved(
        self,
        expense_id: Optional[str],
        user_id: str,
        amount: str,
        currency: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_saved(
            expense_id=expense_id,
            user_id=user_id,
            amount=amount,
            currency=currency,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_persistence_failed(
        self,
        user_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.persistence_failed(
            user_id=user_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_receipt_uploaded(
        self,
        path: str,
        file_size: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.receipt_uploaded(
            path=path,
            file_size=file_size,
            correlation_id=correlation_id,
        ))

    async def log_receipt_deleted(
        self,
        path: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.receipt_deleted(
            path=path,
            correlation_id=correlation_id,
        ))

    async def log_budget_updated(
        self,
        budget_id: str,
        category: str,
        budget: str,
    ) -> None:
        await self.log(AuditEventBuilder.budget_updated(
            budget_id=budget_id,
            category=category,
            budget=budget,
        ))

    async def log_password_reset_requested(
        self,
        email: str,
        redirect_to: str,
    ) -> None:
        await self.log(AuditEventBuilder.password_reset_requested(
            email=email,
            redirect_to=redirect_to,
        ))

    async def log_password_updated(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.password_updated(user_id=user_id))

    async def log_auth_failed(self, reason: str) -> None:
        await self.log(AuditEventBuilder.auth_failed(reason=reason))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through
    all subsequent operations.
    """
    return uuid4()
