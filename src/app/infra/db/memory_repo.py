# src/app/infra/db/memory_repo.py
"""
Process-local repositories, used for local development and tests.
Documents are copied on the way in and out so callers never share state
with the store.
"""
from __future__ import annotations

import copy
import threading
from typing import Optional
from uuid import uuid4

from src.app.domain.cursors import SortValue, comes_after, order_key
from src.app.domain.models import Recipe, RecipeFilter, RecipeSort, UserProfile
from src.app.infra.db.base import ProfileRepository, RecipeRepository
from src.app.infra.db.records import now_utc


class InMemoryRecipeRepository(RecipeRepository):
    def __init__(self) -> None:
        self._recipes: dict[str, Recipe] = {}
        self._lock = threading.Lock()

    def insert(self, recipe: Recipe) -> Recipe:
        stored = copy.deepcopy(recipe)
        stored.id = str(uuid4())
        with self._lock:
            self._recipes[stored.id] = stored
        return copy.deepcopy(stored)

    def get(self, recipe_id: str) -> Optional[Recipe]:
        with self._lock:
            recipe = self._recipes.get(recipe_id)
            return copy.deepcopy(recipe) if recipe else None

    def replace(self, recipe: Recipe, expected_version: int) -> bool:
        with self._lock:
            current = self._recipes.get(recipe.id)
            if current is None or current.version != expected_version:
                return False
            stored = copy.deepcopy(recipe)
            stored.created_at = current.created_at
            self._recipes[recipe.id] = stored
            return True

    def delete(self, recipe_id: str) -> bool:
        with self._lock:
            return self._recipes.pop(recipe_id, None) is not None

    def query(
        self,
        recipe_filter: RecipeFilter,
        sort: RecipeSort,
        limit: int,
        after: Optional[tuple[SortValue, str]] = None,
    ) -> list[Recipe]:
        with self._lock:
            matches = [r for r in self._recipes.values() if recipe_filter.matches(r)]
        if after is not None:
            matches = [r for r in matches if comes_after(r, sort, after)]
        matches.sort(key=lambda r: order_key(r, sort), reverse=True)
        return [copy.deepcopy(r) for r in matches[:limit]]


class InMemoryProfileRepository(ProfileRepository):
    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}
        self._lock = threading.Lock()

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        with self._lock:
            profile = self._profiles.get(uid)
            return copy.deepcopy(profile) if profile else None

    def upsert_profile(self, profile: UserProfile, merge: bool = False) -> UserProfile:
        stored = copy.deepcopy(profile)
        with self._lock:
            existing = self._profiles.get(profile.uid)
            if merge and existing is not None:
                stored.display_name = stored.display_name or existing.display_name
                stored.email = stored.email or existing.email
                stored.photo_url = stored.photo_url or existing.photo_url
                stored.saved_recipes = list(existing.saved_recipes)
                stored.created_at = existing.created_at
            if stored.created_at is None:
                stored.created_at = now_utc()
            self._profiles[profile.uid] = stored
            return copy.deepcopy(stored)

    def set_saved_recipe(self, uid: str, recipe_id: str, saved: bool) -> None:
        with self._lock:
            profile = self._profiles.setdefault(uid, UserProfile(uid=uid, created_at=now_utc()))
            profile.saved_recipes = [rid for rid in profile.saved_recipes if rid != recipe_id]
            if saved:
                profile.saved_recipes.append(recipe_id)
