# src/app/infra/auth/base.py
"""
Abstract base class for identity providers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from src.app.domain.models import UserIdentity

IdentityListener = Callable[[Optional[UserIdentity]], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(ABC):
    """
    Abstract interface for authentication.

    One provider instance tracks one sign-in session.

    Implementations:
    - SupabaseIdentityProvider: Supabase Auth (GoTrue)
    """

    @abstractmethod
    def sign_up(self, email: str, password: str, display_name: str) -> UserIdentity:
        pass

    @abstractmethod
    def sign_in(self, email: str, password: str) -> UserIdentity:
        pass

    @abstractmethod
    def sign_in_with_provider(self, provider_name: str, id_token: str) -> UserIdentity:
        """
        Sign in with an ID token issued by an external provider (e.g. "google").
        """
        pass

    @abstractmethod
    def sign_out(self, access_token: Optional[str] = None) -> None:
        """
        End a session.

        Without a token the provider's own session ends. With one, the
        session that issued `access_token` is revoked on the backend so the
        token stops verifying.
        """
        pass

    @abstractmethod
    def send_password_reset(self, email: str) -> None:
        pass

    @abstractmethod
    def subscribe(self, listener: IdentityListener) -> Unsubscribe:
        """
        Register a listener for identity changes.

        The listener fires once right away with the current identity (or
        None), then again on every sign-in and sign-out.

        Returns:
            A callable that removes the listener
        """
        pass

    @abstractmethod
    def verify_token(self, access_token: str) -> UserIdentity:
        """
        Resolve a bearer access token to the user it was issued for.

        Raises:
            AuthenticationError: If the token is invalid or expired
        """
        pass

    @property
    @abstractmethod
    def access_token(self) -> Optional[str]:
        """Access token of the current session, if signed in."""
        pass
