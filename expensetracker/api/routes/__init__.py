"""API routers."""

from expensetracker.api.routes.auth import router as auth_router
from expensetracker.api.routes.chat import router as chat_router
from expensetracker.api.routes.expenses import router as expenses_router

__all__ = ["auth_router", "chat_router", "expenses_router"]
