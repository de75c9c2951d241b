"""Expense reads, manual entry and the live change stream. All require a bearer token."""

from datetime import date
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse

from expensetracker.api.deps import get_budget_flow, get_current_user, get_expense_flow
from expensetracker.api.schemas import ExpenseForm
from expensetracker.models.expense import ExpenseChangeEvent
from expensetracker.models.user import AuthUser
from expensetracker.orchestrator import BudgetFlow, ExpenseFlow


router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("")
async def list_expenses(
    period: Optional[str] = Query(default=None, description="e.g. today, last month"),
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: AuthUser = Depends(get_current_user),
    flow: ExpenseFlow = Depends(get_expense_flow),
):
    expenses = await flow.list_expenses(user.id, category, start_date, end_date, period)
    summary = await flow.get_summary(user.id, start_date, end_date, period) if not category else []
    return {
        "data": [e.model_dump(mode="json") for e in expenses],
        "count": len(expenses),
        "summary": [s.model_dump(mode="json") for s in summary],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseForm,
    user: AuthUser = Depends(get_current_user),
    flow: ExpenseFlow = Depends(get_expense_flow),
):
    record = await flow.add_expense(user.id, body.model_dump())
    return {"success": True, "data": record.model_dump(mode="json")}


@router.get("/total")
async def total_expense(
    period: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: AuthUser = Depends(get_current_user),
    flow: ExpenseFlow = Depends(get_expense_flow),
):
    total = await flow.get_total(user.id, category, start_date, end_date, period)
    return total.model_dump(mode="json")


@router.get("/dashboard")
async def dashboard(
    user: AuthUser = Depends(get_current_user),
    flow: BudgetFlow = Depends(get_budget_flow),
):
    summary = await flow.dashboard(user.id)
    return {**summary.model_dump(mode="json"), "remaining": str(summary.remaining)}


def format_sse(event: ExpenseChangeEvent) -> str:
    return f"event: {event.event_type.value}\ndata: {event.model_dump_json()}\n\n"


@router.get("/changes")
async def expense_changes(request: Request, user: AuthUser = Depends(get_current_user)):
    """Server-sent events for changes to the caller's expense rows."""
    feed = request.app.state.change_feed_factory(user.id)

    async def stream() -> AsyncIterator[str]:
        await feed.start()
        try:
            async for event in feed.events():
                yield format_sse(event)
        finally:
            await feed.stop()

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
