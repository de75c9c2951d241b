"""Request bodies for the HTTP API."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from expensetracker.models.expense import ChatMessage


class ChatRequest(BaseModel):
    messages: list[ChatMessage]
    user_id: str


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=1)
    redirect_url: Optional[str] = Field(default=None, alias="redirectUrl")


class UpdatePasswordRequest(BaseModel):
    password: str = Field(..., min_length=1)


class ExpenseForm(BaseModel):
    """Manual expense entry. Checked again by the validator before insert."""

    amount: Decimal
    currency: str
    category: str
    date: date
    payment_method: str
    description: Optional[str] = None
