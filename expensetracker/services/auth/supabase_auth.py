"""
Supabase Auth Implementation

Wraps ``client.auth`` from the supabase client. Password updates for a
bearer token go through the admin API, which needs the service-role key:
the token is first resolved to a user id with the anon client, then the
service client updates that user.
"""

from typing import Any, Callable, Optional

from supabase import AuthError

from expensetracker.errors import (
    AuthRequired,
    AuthServiceError,
    ConfigurationError,
    InvalidInput,
)
from expensetracker.models.user import AuthSession, AuthUser
from expensetracker.services.auth.interface import AuthServiceInterface, AuthStateCallback
from expensetracker.services.storage.supabase_store import SupabaseClient


def _to_user(user: Any) -> AuthUser:
    return AuthUser(id=str(user.id), email=getattr(user, "email", None))


def _to_session(session: Any, user: Any = None) -> AuthSession:
    return AuthSession(
        access_token=session.access_token,
        refresh_token=getattr(session, "refresh_token", None),
        user=_to_user(user or session.user),
    )


class SupabaseAuthService(AuthServiceInterface):
    """Supabase implementation of AuthServiceInterface."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    @property
    def _auth(self):
        return self._client.connect().auth

    async def get_user(self, access_token: str) -> AuthUser:
        if not access_token:
            raise AuthRequired("Authentication required")
        try:
            response = self._auth.get_user(access_token)
        except AuthError as e:
            raise AuthRequired(f"Invalid or expired session: {e.message}") from e

        if response is None or response.user is None:
            raise AuthRequired("Invalid or expired session")
        return _to_user(response.user)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = self._auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            raise AuthRequired(e.message) from e

        if response.session is None:
            raise AuthRequired("Sign-in did not return a session")
        return _to_session(response.session, response.user)

    async def sign_up(self, email: str, password: str) -> AuthUser:
        try:
            response = self._auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            raise AuthServiceError(f"Sign-up failed: {e.message}") from e

        if response.user is None:
            raise AuthServiceError("Sign-up did not return a user")
        return _to_user(response.user)

    async def sign_out(self) -> None:
        try:
            self._auth.sign_out()
        except AuthError as e:
            raise AuthServiceError(f"Sign-out failed: {e.message}") from e

    async def send_password_reset(self, email: str, redirect_to: str) -> dict[str, Any]:
        try:
            result = self._auth.reset_password_for_email(email, {"redirect_to": redirect_to})
        except AuthError as e:
            raise InvalidInput(e.message) from e
        return result if isinstance(result, dict) else {}

    async def verify_otp(self, email: str, token: str, otp_type: str = "recovery") -> AuthSession:
        try:
            response = self._auth.verify_otp({"email": email, "token": token, "type": otp_type})
        except AuthError as e:
            raise AuthRequired(f"Invalid or expired code: {e.message}") from e

        if response.session is None:
            raise AuthRequired("Code verification did not return a session")
        return _to_session(response.session, response.user)

    async def update_password(self, access_token: str, password: str) -> AuthUser:
        user = await self.get_user(access_token)

        if not self._client.has_service_role:
            raise ConfigurationError("Server configuration error")

        try:
            response = self._client.service().auth.admin.update_user_by_id(
                user.id,
                {"password": password},
            )
        except AuthError as e:
            raise AuthServiceError(e.message) from e
        return _to_user(response.user) if response and response.user else user

    def on_auth_state_change(self, callback: AuthStateCallback) -> Callable[[], None]:
        def handler(event: Any, session: Any) -> None:
            name = getattr(event, "value", event)
            callback(str(name), _to_session(session) if session else None)

        subscription = self._auth.on_auth_state_change(handler)
        return subscription.unsubscribe
