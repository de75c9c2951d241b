"""
Abstract Auth Interface

Sessions, sign-in and password management are owned by the hosted auth
service. The application only needs the operations below; tests use an
in-memory fake.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from expensetracker.models.user import AuthSession, AuthUser


# (event name, session or None)
AuthStateCallback = Callable[[str, Optional[AuthSession]], None]


class AuthServiceInterface(ABC):
    """Operations delegated to the remote auth service."""

    @abstractmethod
    async def get_user(self, access_token: str) -> AuthUser:
        """
        Resolve an access token to its user.

        Raises:
            AuthRequired: If the token is missing, expired or invalid
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Sign in with email and password.

        Raises:
            AuthRequired: If the credentials are rejected
        """
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AuthUser:
        """
        Create an account. The user may have to confirm their email first.

        Raises:
            AuthServiceError: If the account cannot be created
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    async def send_password_reset(self, email: str, redirect_to: str) -> dict[str, Any]:
        """
        Email a password-reset link that lands on ``redirect_to``.

        Raises:
            InvalidInput: If the auth service rejects the request
        """
        pass

    @abstractmethod
    async def verify_otp(self, email: str, token: str, otp_type: str = "recovery") -> AuthSession:
        """
        Exchange an emailed one-time code for a session.

        Raises:
            AuthRequired: If the code is wrong or expired
        """
        pass

    @abstractmethod
    async def update_password(self, access_token: str, password: str) -> AuthUser:
        """
        Set a new password for the user owning ``access_token``.

        Raises:
            AuthRequired: If the token is invalid
            ConfigurationError: If the server cannot perform admin updates
            AuthServiceError: If the update is rejected
        """
        pass

    @abstractmethod
    def on_auth_state_change(self, callback: AuthStateCallback) -> Callable[[], None]:
        """
        Subscribe to session changes (signed in, signed out, token refreshed).

        Returns:
            A function that cancels the subscription
        """
        pass
