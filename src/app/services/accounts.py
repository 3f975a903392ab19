from __future__ import annotations

import logging

from src.app.domain.models import UserIdentity, UserProfile
from src.app.infra.auth.base import IdentityProvider
from src.app.infra.db.base import ProfileRepository
from src.app.infra.db.records import now_utc

logger = logging.getLogger(__name__)


class AccountService:
    """
    Sign-up and sign-in flows that also maintain the user's profile document.
    """

    def __init__(self, identity: IdentityProvider, profiles: ProfileRepository):
        self._identity = identity
        self._profiles = profiles

    def sign_up(self, email: str, password: str, display_name: str) -> UserIdentity:
        user = self._identity.sign_up(email, password, display_name)
        self._profiles.upsert_profile(
            UserProfile(
                uid=user.uid,
                display_name=user.display_name or display_name,
                email=user.email or email,
                photo_url=user.photo_url,
                saved_recipes=[],
                created_at=now_utc(),
            )
        )
        logger.info("Account created: uid=%s", user.uid)
        return user

    def sign_in(self, email: str, password: str) -> UserIdentity:
        user = self._identity.sign_in(email, password)
        logger.info("Signed in with password: uid=%s", user.uid)
        return user

    def sign_in_with_provider(self, provider_name: str, id_token: str) -> UserIdentity:
        """
        Sign in through an external provider.

        The profile is merged so a returning user keeps their saved recipes.
        """
        user = self._identity.sign_in_with_provider(provider_name, id_token)
        self._profiles.upsert_profile(
            UserProfile(
                uid=user.uid,
                display_name=user.display_name,
                email=user.email,
                photo_url=user.photo_url,
                created_at=now_utc(),
            ),
            merge=True,
        )
        logger.info("Signed in with %s: uid=%s", provider_name, user.uid)
        return user

    def sign_out(self) -> None:
        self._identity.sign_out()

    def send_password_reset(self, email: str) -> None:
        self._identity.send_password_reset(email)
