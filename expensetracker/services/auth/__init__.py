"""Auth services package."""

from expensetracker.services.auth.interface import AuthServiceInterface, AuthStateCallback
from expensetracker.services.auth.supabase_auth import SupabaseAuthService

__all__ = [
    "AuthServiceInterface",
    "AuthStateCallback",
    "SupabaseAuthService",
]
