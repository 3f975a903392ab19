# src/app/deps.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client, create_client

from src.app.config import settings
from src.app.domain.errors import AuthenticationRequiredError
from src.app.domain.models import UserIdentity
from src.app.infra.auth.base import IdentityProvider
from src.app.infra.auth.supabase_provider import SupabaseIdentityProvider
from src.app.infra.db.base import ProfileRepository, RecipeRepository
from src.app.infra.db.memory_repo import InMemoryProfileRepository, InMemoryRecipeRepository
from src.app.infra.db.supabase_recipes_repo import SupabaseProfileRepository, SupabaseRecipeRepository
from src.app.infra.storage.base import StorageProvider
from src.app.infra.storage.local_provider import LocalStorageProvider
from src.app.infra.storage.r2_provider import R2StorageProvider
from src.app.services.accounts import AccountService
from src.app.services.analytics import AnalyticsService
from src.app.services.comments import CommentService
from src.app.services.images import ImageUploader
from src.app.services.interactions import InteractionAggregator
from src.app.services.recipe_store import RecipeStore

logger = logging.getLogger(__name__)

_client: Client | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL), settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def get_identity_provider(supa: Client = Depends(get_supabase)) -> IdentityProvider:
    """Provider used to verify bearer tokens with the service key."""
    return SupabaseIdentityProvider(supa)


def get_session_identity_provider() -> Iterator[IdentityProvider]:
    """
    A fresh provider per request for sign-in flows, so one user's session
    never leaks into the shared client.
    """
    key = settings.SUPABASE_ANON_KEY or settings.SUPABASE_SERVICE_ROLE_KEY
    yield SupabaseIdentityProvider(create_client(str(settings.SUPABASE_URL), key))


auth_scheme = HTTPBearer(auto_error=False)


def get_access_token(cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme)) -> Optional[str]:
    if cred is None or cred.scheme.lower() != "bearer":
        return None
    return cred.credentials


def get_optional_user(
    token: Optional[str] = Depends(get_access_token),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Optional[UserIdentity]:
    """
    Receives Authorization: Bearer <access_token>, validates it with the
    identity provider and returns the user, or None without a token.
    """
    if token is None:
        return None
    return identity.verify_token(token)


def get_current_user(user: Optional[UserIdentity] = Depends(get_optional_user)) -> UserIdentity:
    if user is None:
        raise AuthenticationRequiredError("Missing token")
    return user


@lru_cache
def get_recipe_repository() -> RecipeRepository:
    if settings.DATA_BACKEND == "memory":
        logger.warning("Using in-memory recipe storage; data is lost on restart")
        return InMemoryRecipeRepository()
    return SupabaseRecipeRepository(get_supabase())


@lru_cache
def get_profile_repository() -> ProfileRepository:
    if settings.DATA_BACKEND == "memory":
        return InMemoryProfileRepository()
    return SupabaseProfileRepository(get_supabase())


@lru_cache
def get_storage_provider() -> StorageProvider:
    if settings.STORAGE_BACKEND == "local":
        return LocalStorageProvider(settings.MEDIA_ROOT, settings.MEDIA_BASE_URL)
    return R2StorageProvider()


def get_interactions(
    recipes: RecipeRepository = Depends(get_recipe_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> InteractionAggregator:
    return InteractionAggregator(recipes, profiles, settings.MAX_WRITE_ATTEMPTS)


def get_recipe_store(
    recipes: RecipeRepository = Depends(get_recipe_repository),
    interactions: InteractionAggregator = Depends(get_interactions),
    storage: StorageProvider = Depends(get_storage_provider),
) -> RecipeStore:
    return RecipeStore(recipes, interactions, storage, settings.MAX_WRITE_ATTEMPTS)


def get_comment_service(recipes: RecipeRepository = Depends(get_recipe_repository)) -> CommentService:
    return CommentService(recipes, settings.MAX_WRITE_ATTEMPTS)


def get_image_uploader(
    recipes: RecipeRepository = Depends(get_recipe_repository),
    storage: StorageProvider = Depends(get_storage_provider),
) -> ImageUploader:
    return ImageUploader(storage, recipes, settings.MAX_IMAGE_BYTES, settings.MAX_WRITE_ATTEMPTS)


def get_analytics(recipes: RecipeRepository = Depends(get_recipe_repository)) -> AnalyticsService:
    return AnalyticsService(recipes)


def get_account_service(
    identity: IdentityProvider = Depends(get_session_identity_provider),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> AccountService:
    return AccountService(identity, profiles)
