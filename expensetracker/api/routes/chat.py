from fastapi import APIRouter, Depends

from expensetracker.api.deps import get_expense_flow
from expensetracker.api.schemas import ChatRequest
from expensetracker.orchestrator import ExpenseFlow


router = APIRouter(tags=["Chat"])


@router.post("/chat")
async def chat(body: ChatRequest, flow: ExpenseFlow = Depends(get_expense_flow)):
    """
    Extract one expense from the last chat message and store it.

    400 for unusable input or model output, 500 for upstream or backend failures.
    """
    record = await flow.extract_from_chat(body.messages, body.user_id)
    return {"success": True, "data": record.model_dump(mode="json")}
