from __future__ import annotations

import logging
import os
import time
from datetime import datetime
from typing import Callable, Optional, TypeVar
from uuid import UUID, uuid4

import httpx
from supabase import Client, create_client

from src.app.domain.cursors import SortValue
from src.app.domain.errors import UnavailableError
from src.app.domain.models import Recipe, RecipeFilter, RecipeSort, UserProfile
from src.app.infra.db.base import ProfileRepository, RecipeRepository
from src.app.infra.db.records import (
    format_datetime,
    now_utc,
    profile_to_row,
    recipe_to_row,
    row_to_profile,
    row_to_recipe,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_READ_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.2

_TRANSIENT_ERRORS = (httpx.TransportError, ConnectionError, TimeoutError)


def _create_supabase_client() -> Client:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required")
    return create_client(url, key)


def _is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def _filter_literal(value: SortValue) -> str:
    if isinstance(value, datetime):
        # timestamps contain reserved PostgREST characters
        return f'"{format_datetime(value)}"'
    return str(value)


class _SupabaseTable:
    """Read retries and error mapping shared by the Supabase repositories."""

    def __init__(
        self,
        client: Client | None,
        read_attempts: int,
        backoff_seconds: float,
    ):
        self._client = client or _create_supabase_client()
        self._read_attempts = max(1, read_attempts)
        self._backoff_seconds = backoff_seconds

    def _read(self, operation: str, fn: Callable[[], T]) -> T:
        for attempt in range(1, self._read_attempts + 1):
            try:
                return fn()
            except _TRANSIENT_ERRORS as error:
                if attempt == self._read_attempts:
                    logger.error("Network error during %s after %d attempts: %s", operation, attempt, error)
                    raise UnavailableError(operation, str(error)) from error
                delay = self._backoff_seconds * 2 ** (attempt - 1)
                logger.warning("Network error during %s (attempt %d), retrying in %.1fs: %s", operation, attempt, delay, error)
                time.sleep(delay)
        raise UnavailableError(operation, "no attempts made")

    def _write(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except _TRANSIENT_ERRORS as error:
            logger.error("Network error during %s: %s", operation, error)
            raise UnavailableError(operation, str(error)) from error


class SupabaseRecipeRepository(_SupabaseTable, RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(
        self,
        client: Client | None = None,
        read_attempts: int = DEFAULT_READ_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ):
        super().__init__(client, read_attempts, backoff_seconds)
        logger.info("SupabaseRecipeRepository initialized")

    def insert(self, recipe: Recipe) -> Recipe:
        row = recipe_to_row(recipe)
        row["id"] = str(uuid4())

        result = self._write(
            "insert recipe",
            lambda: self._client.table(self.TABLE_NAME).insert(row).execute(),
        )
        if not result.data:
            raise UnavailableError("insert recipe", "no row returned")
        return row_to_recipe(result.data[0])

    def get(self, recipe_id: str) -> Optional[Recipe]:
        if not _is_uuid(recipe_id):
            return None

        result = self._read(
            "get recipe",
            lambda: (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("id", recipe_id)
                .limit(1)
                .execute()
            ),
        )
        rows = result.data or []
        return row_to_recipe(rows[0]) if rows else None

    def replace(self, recipe: Recipe, expected_version: int) -> bool:
        row = recipe_to_row(recipe)
        row.pop("id")
        row.pop("created_at")

        result = self._write(
            "update recipe",
            lambda: (
                self._client.table(self.TABLE_NAME)
                .update(row)
                .eq("id", recipe.id)
                .eq("version", expected_version)
                .execute()
            ),
        )
        if not result.data:
            logger.debug("Version conflict on recipe %s (expected version %d)", recipe.id, expected_version)
            return False
        return True

    def delete(self, recipe_id: str) -> bool:
        if not _is_uuid(recipe_id):
            return False

        result = self._write(
            "delete recipe",
            lambda: self._client.table(self.TABLE_NAME).delete().eq("id", recipe_id).execute(),
        )
        return bool(result.data)

    def query(
        self,
        recipe_filter: RecipeFilter,
        sort: RecipeSort,
        limit: int,
        after: Optional[tuple[SortValue, str]] = None,
    ) -> list[Recipe]:
        def run():
            query = self._client.table(self.TABLE_NAME).select("*")
            if recipe_filter.category is not None:
                query = query.eq("category", recipe_filter.category)
            if recipe_filter.owner_id is not None:
                query = query.eq("user_id", recipe_filter.owner_id)
            if recipe_filter.tag is not None:
                query = query.contains("tags", [recipe_filter.tag.strip().lower()])
            if recipe_filter.featured:
                query = query.eq("is_featured", True)
            if recipe_filter.saved_by is not None:
                query = query.contains("saves", [recipe_filter.saved_by])
            if after is not None:
                value, last_id = after
                column = sort.column
                literal = _filter_literal(value)
                query = query.or_(f"{column}.lt.{literal},and({column}.eq.{literal},id.lt.{last_id})")
            return (
                query.order(sort.column, desc=True)
                .order("id", desc=True)
                .limit(limit)
                .execute()
            )

        result = self._read("list recipes", run)
        return [row_to_recipe(row) for row in result.data or []]


class SupabaseProfileRepository(_SupabaseTable, ProfileRepository):
    TABLE_NAME = "profiles"

    def __init__(
        self,
        client: Client | None = None,
        read_attempts: int = DEFAULT_READ_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ):
        super().__init__(client, read_attempts, backoff_seconds)
        logger.info("SupabaseProfileRepository initialized")

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        result = self._read(
            "get profile",
            lambda: (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("uid", uid)
                .limit(1)
                .execute()
            ),
        )
        rows = result.data or []
        return row_to_profile(rows[0]) if rows else None

    def upsert_profile(self, profile: UserProfile, merge: bool = False) -> UserProfile:
        if merge:
            existing = self.get_profile(profile.uid)
            if existing is not None:
                profile = UserProfile(
                    uid=profile.uid,
                    display_name=profile.display_name or existing.display_name,
                    email=profile.email or existing.email,
                    photo_url=profile.photo_url or existing.photo_url,
                    saved_recipes=existing.saved_recipes,
                    created_at=existing.created_at,
                )
        if profile.created_at is None:
            profile.created_at = now_utc()

        row = profile_to_row(profile)
        result = self._write(
            "upsert profile",
            lambda: self._client.table(self.TABLE_NAME).upsert(row, on_conflict="uid").execute(),
        )
        rows = result.data or []
        return row_to_profile(rows[0]) if rows else profile

    def set_saved_recipe(self, uid: str, recipe_id: str, saved: bool) -> None:
        profile = self.get_profile(uid) or UserProfile(uid=uid, created_at=now_utc())
        saved_recipes = [rid for rid in profile.saved_recipes if rid != recipe_id]
        if saved:
            saved_recipes.append(recipe_id)
        if saved_recipes == profile.saved_recipes:
            return

        profile.saved_recipes = saved_recipes
        row = profile_to_row(profile)
        self._write(
            "update saved recipes",
            lambda: self._client.table(self.TABLE_NAME).upsert(row, on_conflict="uid").execute(),
        )
        logger.info("Saved recipes updated: user=%s, recipe=%s, saved=%s", uid, recipe_id, saved)
