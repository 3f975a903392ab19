# src/app/services/session.py
"""
Session context: who is signed in and their profile.

The context subscribes to the identity provider when opened and keeps the
current user and profile in sync until closed.

The HTTP API is stateless and resolves the user from the bearer token on
every request, so it does not use this class. It is meant for long-lived
callers that hold one sign-in session, such as scripts or an embedding
application.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from src.app.domain.errors import AuthenticationRequiredError, RecipeHubError
from src.app.domain.models import UserIdentity, UserProfile
from src.app.infra.auth.base import IdentityProvider, Unsubscribe
from src.app.infra.db.base import ProfileRepository

logger = logging.getLogger(__name__)


class SessionContext:
    def __init__(self, identity: IdentityProvider, profiles: ProfileRepository):
        self._identity = identity
        self._profiles = profiles
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Unsubscribe] = None
        self._user: Optional[UserIdentity] = None
        self._profile: Optional[UserProfile] = None
        self._ready = False

    def __enter__(self) -> "SessionContext":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def user(self) -> Optional[UserIdentity]:
        return self._user

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._profile

    @property
    def is_ready(self) -> bool:
        """True once the provider has reported the initial identity."""
        return self._ready

    def open(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._identity.subscribe(self._on_identity)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        with self._lock:
            self._user = None
            self._profile = None
            self._ready = False

    def require_user(self) -> UserIdentity:
        """
        Raises:
            AuthenticationRequiredError: If nobody is signed in
        """
        if self._user is None:
            raise AuthenticationRequiredError()
        return self._user

    def _on_identity(self, identity: Optional[UserIdentity]) -> None:
        with self._lock:
            previous = self._user
            self._user = identity
            self._ready = True
            if identity is None:
                self._profile = None
                if previous is not None:
                    logger.info("Signed out: uid=%s", previous.uid)
                return
            # providers may report the same sign-in more than once
            if previous is not None and previous.uid == identity.uid and self._profile is not None:
                return

        profile = self._load_profile(identity.uid)
        with self._lock:
            if self._user is not None and self._user.uid == identity.uid:
                self._profile = profile
        logger.info("Signed in: uid=%s, profile_loaded=%s", identity.uid, profile is not None)

    def _load_profile(self, uid: str) -> Optional[UserProfile]:
        try:
            return self._profiles.get_profile(uid)
        except RecipeHubError as error:
            logger.error("Failed to load profile for %s: %s", uid, error)
        except Exception:
            logger.exception("Unexpected error loading profile for %s", uid)
        return None
