"""Auth-facing models: the signed-in user and their session."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """Identity of the signed-in user, as reported by the auth service."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    email: Optional[str] = None


class AuthSession(BaseModel):
    """Tokens for a signed-in user."""

    access_token: str
    refresh_token: Optional[str] = None
    user: AuthUser
