"""
Dependency providers for the API routes.

Components live on ``app.state`` and are built on first use, so the app
starts (and /health answers) before any backend settings are checked.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from expensetracker.audit import AuditLogger
from expensetracker.config import AppSettings
from expensetracker.errors import AuthRequired
from expensetracker.models.user import AuthUser
from expensetracker.orchestrator import (
    AppComponents,
    BudgetFlow,
    ExpenseFlow,
    PasswordFlow,
    create_app_components,
)
from expensetracker.services.auth import AuthServiceInterface


bearer_scheme = HTTPBearer(auto_error=False)


def get_components(request: Request) -> AppComponents:
    state = request.app.state
    if state.components is None:
        state.components = create_app_components()
    return state.components


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.app_settings


def get_audit_logger(request: Request) -> AuditLogger:
    return request.app.state.audit_logger


def get_expense_flow(components: AppComponents = Depends(get_components)) -> ExpenseFlow:
    return components.expense_flow


def get_budget_flow(components: AppComponents = Depends(get_components)) -> BudgetFlow:
    return components.budget_flow


def get_password_flow(components: AppComponents = Depends(get_components)) -> PasswordFlow:
    return components.password_flow


def get_auth_service(components: AppComponents = Depends(get_components)) -> AuthServiceInterface:
    return components.auth_service


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    audit_logger: AuditLogger = Depends(get_audit_logger),
) -> str:
    if credentials is None or not credentials.credentials:
        await audit_logger.log_auth_failed("Missing bearer token")
        raise AuthRequired("Authentication required")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    auth_service: AuthServiceInterface = Depends(get_auth_service),
    audit_logger: AuditLogger = Depends(get_audit_logger),
) -> AuthUser:
    try:
        return await auth_service.get_user(token)
    except AuthRequired as e:
        await audit_logger.log_auth_failed(e.message)
        raise
