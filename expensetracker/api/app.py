"""
HTTP API

FastAPI application exposing the chat extraction endpoint, the password
endpoints and expense reads. Every domain error renders as
``{"error": message}`` with the status the error carries; request bodies
that fail schema validation are 400s.
"""

from typing import Callable, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from expensetracker import __version__
from expensetracker.api.routes import auth_router, chat_router, expenses_router
from expensetracker.audit import AuditLogger, configure_logging
from expensetracker.config import AppSettings, get_settings
from expensetracker.errors import ExpenseTrackerError
from expensetracker.orchestrator import AppComponents
from expensetracker.services.realtime import ChangeFeed, SupabaseChangeFeed


logger = structlog.get_logger("expensetracker.api")


def default_change_feed(user_id: str) -> ChangeFeed:
    return SupabaseChangeFeed(row_filter=f"user_id=eq.{user_id}")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid {location}: {first.get('msg')}" if location else str(first.get("msg"))


def create_app(
    components: Optional[AppComponents] = None,
    app_settings: Optional[AppSettings] = None,
    change_feed_factory: Optional[Callable[[str], ChangeFeed]] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        components: Pre-built flows; built from settings on first request if None
        app_settings: Application settings; read from the environment if None
        change_feed_factory: Builds the change feed for one user's SSE stream
        audit_logger: Receives auth failures and unhandled errors
    """
    app_settings = app_settings or get_settings().app
    configure_logging(app_settings.log_level)

    app = FastAPI(
        title="Expense Tracker API",
        description="Chat-based expense capture backed by Supabase and Gemini.",
        version=__version__,
    )
    app.state.components = components
    app.state.app_settings = app_settings
    app.state.change_feed_factory = change_feed_factory or default_change_feed
    app.state.audit_logger = audit_logger or AuditLogger()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ExpenseTrackerError)
    async def handle_domain_error(request: Request, exc: ExpenseTrackerError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "request_failed",
            path=request.url.path,
            status=exc.status_code,
            code=exc.code,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.info("request_invalid", path=request.url.path, error=message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        await request.app.state.audit_logger.log_error(
            error_type=type(exc).__name__,
            error_message=str(exc),
            details={"path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "healthy", "version": __version__}

    app.include_router(chat_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(expenses_router, prefix="/api")

    return app


def run(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Serve the API with uvicorn."""
    uvicorn.run("expensetracker.api.app:create_app", factory=True, host=host, port=port)
