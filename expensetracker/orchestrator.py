"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Expenses (chat text -> extraction -> insert; form -> validate -> insert; reads)
2. Receipts (validate -> upload file -> index row; list; delete)
3. Budgets (list; update in place; dashboard totals)
4. Passwords (reset email; update with a bearer token)

DESIGN DECISION: Every collaborator (backend client, text generator,
auth service) is injected. Nothing here reaches for a module-level
singleton, so each flow runs in tests without network access.
Every write is audited.
"""

import time
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, NamedTuple, Optional, Sequence, Union
from uuid import UUID

from expensetracker.agents import GeminiTextGenerator, TextGenerator
from expensetracker.audit import AuditLogger, create_correlation_id
from expensetracker.config import Settings, get_settings
from expensetracker.errors import AuthRequired, InvalidInput, PersistenceFailed
from expensetracker.extraction import ExpenseExtractor
from expensetracker.models.expense import (
    BudgetAllocation,
    CategorySummary,
    ChatMessage,
    DashboardSummary,
    ExpenseRecord,
    ExpenseTotal,
    NewExpense,
    Receipt,
)
from expensetracker.models.user import AuthUser
from expensetracker.queries import ExpenseQueryExecutor, category_totals
from expensetracker.services.auth import AuthServiceInterface, SupabaseAuthService
from expensetracker.services.storage import (
    BudgetStorageInterface,
    ExpenseStorageInterface,
    NotFoundError,
    ReceiptStorageInterface,
    StorageError,
    SupabaseBudgetStorage,
    SupabaseClient,
    SupabaseExpenseStorage,
    SupabaseReceiptStorage,
)
from expensetracker.validation import ExpenseValidator


class ExpenseFlow:
    """
    Orchestrates expense creation and reads.

    Two ways in:
    - Chat: the extraction pipeline turns free text into one row
    - Form: the validator checks a manual entry before it is inserted

    Expenses are never updated or deleted here.
    """

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        generator: Optional[TextGenerator] = None,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._storage = expense_storage
        self._generator = generator
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._executor = ExpenseQueryExecutor(expense_storage, today=today)
        self._today = today
        self._extractor: Optional[ExpenseExtractor] = None

    @property
    def extractor(self) -> ExpenseExtractor:
        """Pipeline built on first use, so form-only callers need no model."""
        if self._extractor is None:
            self._extractor = ExpenseExtractor(
                generator=self._generator or GeminiTextGenerator(),
                expense_storage=self._storage,
                audit_logger=self._audit_logger,
                today=self._today,
            )
        return self._extractor

    async def extract_from_chat(
        self,
        messages: Sequence[Union[ChatMessage, dict]],
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseRecord:
        """Run the extraction pipeline on the last chat turn."""
        return await self.extractor.extract(messages, user_id, correlation_id)

    async def add_expense(
        self,
        user_id: str,
        form: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseRecord:
        """
        Insert a manually entered expense.

        Raises:
            InvalidInput: Form fails validation (warnings do not block)
            PersistenceFailed: The backend rejected the insert
        """
        correlation_id = correlation_id or create_correlation_id()

        if not user_id:
            raise InvalidInput("User ID is required")

        result = self._validator.validate_manual_expense(form)
        if result.has_errors:
            raise InvalidInput(
                "; ".join(result.error_messages),
                details={"issues": [i.model_dump() for i in result.issues]},
            )

        expense = NewExpense(
            user_id=user_id,
            amount=form["amount"],
            currency=form["currency"],
            category=str(form["category"]).strip().lower(),
            date=form["date"],
            payment_method=str(form["payment_method"]).strip().lower(),
            description=form.get("description") or None,
        )

        try:
            record = await self._storage.insert_expense(expense)
        except StorageError as e:
            await self._audit_logger.log_persistence_failed(
                user_id=user_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise PersistenceFailed(f"Failed to add expense: {e}") from e

        await self._audit_logger.log_expense_saved(
            expense_id=str(record.id) if record.id is not None else None,
            user_id=user_id,
            amount=str(record.amount),
            currency=record.currency,
            category=record.category,
            correlation_id=correlation_id,
        )
        return record

    async def list_expenses(
        self,
        user_id: str,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period: Optional[str] = None,
    ) -> list[ExpenseRecord]:
        return await self._executor.list_expenses(user_id, category, start_date, end_date, period)

    async def get_total(
        self,
        user_id: str,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period: Optional[str] = None,
    ) -> ExpenseTotal:
        return await self._executor.get_total(user_id, category, start_date, end_date, period)

    async def get_summary(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period: Optional[str] = None,
    ) -> list[CategorySummary]:
        return await self._executor.get_summary(user_id, start_date, end_date, period)


class ReceiptFlow:
    """
    Orchestrates receipt uploads.

    Flow:
    1. Validate → extension and size from configuration
    2. Upload → file stored as ``<epoch-millis>_<name>``
    3. Index → ``{url: path}`` row in the receipts table
    """

    def __init__(
        self,
        receipt_storage: ReceiptStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = receipt_storage
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock

    def storage_path(self, filename: str) -> str:
        return f"{int(self._clock() * 1000)}_{filename}"

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> Receipt:
        """
        Store a receipt file and index it.

        Raises:
            InvalidInput: Unsupported type, empty or oversized file
            PersistenceFailed: Upload or index insert rejected
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_receipt_upload(filename, len(content))
        if result.has_errors:
            raise InvalidInput("; ".join(result.error_messages))

        path = self.storage_path(filename)
        try:
            await self._storage.upload_file(path, content, content_type)
            receipt = await self._storage.insert_index_row(path)
        except StorageError as e:
            await self._audit_logger.log_external_service_error(
                service="supabase-storage",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise PersistenceFailed(str(e)) from e

        await self._audit_logger.log_receipt_uploaded(
            path=path,
            file_size=len(content),
            correlation_id=correlation_id,
        )
        return receipt

    async def list_receipts(self, limit: int = 100) -> list[Receipt]:
        try:
            return await self._storage.list_receipts(limit=limit)
        except StorageError as e:
            raise PersistenceFailed(str(e)) from e

    async def delete(self, path: str, correlation_id: Optional[UUID] = None) -> None:
        """
        Remove a receipt's file and index row.

        Raises:
            InvalidInput: No receipt at ``path``
            PersistenceFailed: The backend rejected the delete
        """
        try:
            await self._storage.delete_receipt(path)
        except NotFoundError as e:
            raise InvalidInput(str(e)) from e
        except StorageError as e:
            raise PersistenceFailed(str(e)) from e

        await self._audit_logger.log_receipt_deleted(path=path, correlation_id=correlation_id)


class BudgetFlow:
    """Budget allocations and the dashboard that compares them to spend."""

    def __init__(
        self,
        budget_storage: BudgetStorageInterface,
        expense_storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._budgets = budget_storage
        self._expenses = expense_storage
        self._audit_logger = audit_logger or AuditLogger()

    async def list_budgets(self) -> list[BudgetAllocation]:
        try:
            return await self._budgets.list_budgets()
        except StorageError as e:
            raise PersistenceFailed(str(e)) from e

    async def update_budget(
        self,
        budget_id: Union[int, str],
        amount: Union[Decimal, str, int, float],
    ) -> BudgetAllocation:
        """
        Set one category's allocation.

        Raises:
            InvalidInput: Amount is not a non-negative number, or no such budget
            PersistenceFailed: The backend rejected the update
        """
        try:
            value = Decimal(str(amount))
        except InvalidOperation as e:
            raise InvalidInput("Budget must be a number") from e
        if not value.is_finite() or value < 0:
            raise InvalidInput("Budget must be zero or more")

        try:
            budget = await self._budgets.update_budget(budget_id, value)
        except NotFoundError as e:
            raise InvalidInput(str(e)) from e
        except StorageError as e:
            raise PersistenceFailed(str(e)) from e

        await self._audit_logger.log_budget_updated(
            budget_id=str(budget.id),
            category=budget.category,
            budget=str(budget.budget),
        )
        return budget

    async def dashboard(self, user_id: str) -> DashboardSummary:
        """Budgets, total budget and the user's spend per category."""
        budgets = await self.list_budgets()
        try:
            expenses = await self._expenses.list_expenses(user_id=user_id)
        except StorageError as e:
            raise PersistenceFailed(str(e)) from e

        spent = category_totals(expenses)
        return DashboardSummary(
            budgets=budgets,
            total_budget=sum((b.budget for b in budgets), Decimal("0")),
            spent_by_category=spent,
            total_spent=sum(spent.values(), Decimal("0")),
        )


class PasswordFlow:
    """Password reset email and password update, both delegated to the auth service."""

    def __init__(
        self,
        auth_service: AuthServiceInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._auth = auth_service
        self._audit_logger = audit_logger or AuditLogger()

    async def request_reset(self, email: str, redirect_to: str) -> dict[str, Any]:
        if not email or not email.strip():
            raise InvalidInput("Email is required")

        data = await self._auth.send_password_reset(email.strip(), redirect_to)
        await self._audit_logger.log_password_reset_requested(email=email, redirect_to=redirect_to)
        return data

    async def update_password(self, access_token: str, password: str) -> AuthUser:
        if not password:
            raise InvalidInput("Password is required")

        try:
            user = await self._auth.update_password(access_token, password)
        except AuthRequired as e:
            await self._audit_logger.log_auth_failed(e.message)
            raise
        await self._audit_logger.log_password_updated(user_id=user.id)
        return user


class AppComponents(NamedTuple):
    expense_flow: ExpenseFlow
    receipt_flow: ReceiptFlow
    budget_flow: BudgetFlow
    password_flow: PasswordFlow
    auth_service: AuthServiceInterface
    supabase_client: SupabaseClient


def create_app_components(
    settings: Optional[Settings] = None,
    generator: Optional[TextGenerator] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    The Supabase client connects lazily on first use; the Gemini model is
    configured on the first chat extraction unless ``generator`` is given.
    """
    settings = settings or get_settings()
    audit_logger = AuditLogger()
    validator = ExpenseValidator(settings.app)

    client = SupabaseClient(settings.supabase)
    expense_storage = SupabaseExpenseStorage(client)
    auth_service = SupabaseAuthService(client)

    return AppComponents(
        expense_flow=ExpenseFlow(
            expense_storage=expense_storage,
            generator=generator,
            validator=validator,
            audit_logger=audit_logger,
        ),
        receipt_flow=ReceiptFlow(
            receipt_storage=SupabaseReceiptStorage(client),
            validator=validator,
            audit_logger=audit_logger,
        ),
        budget_flow=BudgetFlow(
            budget_storage=SupabaseBudgetStorage(client),
            expense_storage=expense_storage,
            audit_logger=audit_logger,
        ),
        password_flow=PasswordFlow(auth_service, audit_logger),
        auth_service=auth_service,
        supabase_client=client,
    )
