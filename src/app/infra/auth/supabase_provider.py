from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

import httpx
from supabase import Client

from src.app.domain.errors import AuthenticationError, UnavailableError
from src.app.domain.models import UserIdentity
from src.app.infra.auth.base import IdentityListener, IdentityProvider, Unsubscribe

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUPPORTED_PROVIDERS = {"google", "apple", "facebook", "github"}


def user_to_identity(user: Any) -> UserIdentity:
    """Map a Supabase Auth user to the identity the rest of the app sees."""
    meta = getattr(user, "user_metadata", None) or {}
    if not isinstance(meta, dict):
        meta = {}
    display_name = meta.get("display_name") or meta.get("full_name") or meta.get("name")
    photo_url = meta.get("avatar_url") or meta.get("picture")
    return UserIdentity(
        uid=str(user.id),
        email=getattr(user, "email", None),
        display_name=display_name,
        photo_url=photo_url,
    )


class SupabaseIdentityProvider(IdentityProvider):
    def __init__(self, client: Client):
        self._client = client

    def _call(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except httpx.TransportError as error:
            logger.error("Auth backend unreachable during %s: %s", operation, error)
            raise UnavailableError(operation, str(error)) from error
        except (AuthenticationError, UnavailableError):
            raise
        except Exception as error:
            logger.info("Auth rejected %s: %s", operation, error)
            raise AuthenticationError(str(error) or "Authentication failed") from error

    @staticmethod
    def _identity_from(response: Any, operation: str) -> UserIdentity:
        user = getattr(response, "user", None)
        if not user:
            raise AuthenticationError(f"Could not complete {operation}")
        return user_to_identity(user)

    def sign_up(self, email: str, password: str, display_name: str) -> UserIdentity:
        response = self._call(
            "sign up",
            lambda: self._client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"display_name": display_name}},
                }
            ),
        )
        identity = self._identity_from(response, "sign up")
        identity.display_name = identity.display_name or display_name
        logger.info("User signed up: uid=%s", identity.uid)
        return identity

    def sign_in(self, email: str, password: str) -> UserIdentity:
        response = self._call(
            "sign in",
            lambda: self._client.auth.sign_in_with_password({"email": email, "password": password}),
        )
        return self._identity_from(response, "sign in")

    def sign_in_with_provider(self, provider_name: str, id_token: str) -> UserIdentity:
        provider = provider_name.strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise AuthenticationError(f"Unsupported sign-in provider: {provider_name}")
        response = self._call(
            "provider sign in",
            lambda: self._client.auth.sign_in_with_id_token({"provider": provider, "token": id_token}),
        )
        return self._identity_from(response, "provider sign in")

    def sign_out(self, access_token: Optional[str] = None) -> None:
        if access_token is None:
            self._call("sign out", self._client.auth.sign_out)
            return
        # needs a client built with the service role key
        self._call("revoke session", lambda: self._client.auth.admin.sign_out(access_token))
        logger.info("Session revoked")

    def send_password_reset(self, email: str) -> None:
        self._call("password reset", lambda: self._client.auth.reset_password_for_email(email))
        logger.info("Password reset requested")

    def subscribe(self, listener: IdentityListener) -> Unsubscribe:
        def on_change(event: Any, session: Any) -> None:
            user = getattr(session, "user", None) if session else None
            listener(user_to_identity(user) if user else None)

        session = self._call("get session", self._client.auth.get_session)
        user = getattr(session, "user", None) if session else None
        listener(user_to_identity(user) if user else None)

        subscription = self._client.auth.on_auth_state_change(on_change)
        return subscription.unsubscribe

    def verify_token(self, access_token: str) -> UserIdentity:
        response = self._call("verify token", lambda: self._client.auth.get_user(access_token))
        user = getattr(response, "user", None)
        if not user:
            raise AuthenticationError("Invalid token")
        return user_to_identity(user)

    @property
    def access_token(self) -> Optional[str]:
        try:
            session = self._client.auth.get_session()
        except httpx.TransportError:
            return None
        return getattr(session, "access_token", None) if session else None
