from fastapi import APIRouter, Depends, Request

from expensetracker.api.deps import get_app_settings, get_bearer_token, get_password_flow
from expensetracker.api.schemas import ResetPasswordRequest, UpdatePasswordRequest
from expensetracker.config import AppSettings
from expensetracker.orchestrator import PasswordFlow


router = APIRouter(tags=["Auth"])


def default_redirect(request: Request, settings: AppSettings) -> str:
    """``<scheme>://<host><reset path>`` for the host the request was sent to."""
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}{settings.reset_password_path}"


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    request: Request,
    flow: PasswordFlow = Depends(get_password_flow),
    settings: AppSettings = Depends(get_app_settings),
):
    redirect_to = body.redirect_url or default_redirect(request, settings)
    data = await flow.request_reset(body.email, redirect_to)
    return {"message": "Password reset email sent", "data": data}


@router.post("/update-password")
async def update_password(
    body: UpdatePasswordRequest,
    token: str = Depends(get_bearer_token),
    flow: PasswordFlow = Depends(get_password_flow),
):
    await flow.update_password(token, body.password)
    return {"message": "Password updated successfully", "success": True}
