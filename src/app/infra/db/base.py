# src/app/infra/db/base.py
"""
Abstract base classes for recipe and profile persistence.
This interface allows easy swapping between different database backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from src.app.domain.cursors import SortValue
from src.app.domain.models import Recipe, RecipeFilter, RecipeSort, UserProfile


class RecipeRepository(ABC):
    """
    Abstract interface for recipe documents.

    Implementations:
    - SupabaseRecipeRepository: Postgres table accessed through Supabase
    - InMemoryRecipeRepository: process-local store for development and tests
    """

    @abstractmethod
    def insert(self, recipe: Recipe) -> Recipe:
        """
        Persist a new recipe.

        Args:
            recipe: The recipe to store; its `id` is ignored

        Returns:
            The stored recipe with the ID assigned by the backend
        """
        pass

    @abstractmethod
    def get(self, recipe_id: str) -> Optional[Recipe]:
        """
        Fetch a recipe by ID.

        Returns:
            The recipe, or None if it does not exist
        """
        pass

    @abstractmethod
    def replace(self, recipe: Recipe, expected_version: int) -> bool:
        """
        Overwrite a stored recipe if nobody wrote it since it was read.

        Args:
            recipe: The full new document; `recipe.version` must already be
                `expected_version + 1`
            expected_version: The version the caller read

        Returns:
            True if the write was applied, False on a version conflict or if
            the recipe no longer exists
        """
        pass

    @abstractmethod
    def delete(self, recipe_id: str) -> bool:
        """
        Remove a recipe together with its embedded comments.

        Returns:
            True if a recipe was deleted
        """
        pass

    @abstractmethod
    def query(
        self,
        recipe_filter: RecipeFilter,
        sort: RecipeSort,
        limit: int,
        after: Optional[tuple[SortValue, str]] = None,
    ) -> list[Recipe]:
        """
        List recipes ordered by (sort key desc, id desc).

        Args:
            recipe_filter: Exact-match filters
            sort: Sort order
            limit: Max recipes to return
            after: Decoded cursor; only recipes strictly after it are returned

        Returns:
            List of recipes
        """
        pass


class ProfileRepository(ABC):
    """
    Abstract interface for user profile documents.
    """

    @abstractmethod
    def get_profile(self, uid: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    def upsert_profile(self, profile: UserProfile, merge: bool = False) -> UserProfile:
        """
        Create or overwrite a profile.

        Args:
            profile: Profile to store
            merge: Keep stored fields the new profile leaves empty,
                including saved recipes

        Returns:
            The stored profile
        """
        pass

    @abstractmethod
    def set_saved_recipe(self, uid: str, recipe_id: str, saved: bool) -> None:
        """
        Add or remove a recipe from the user's saved-recipes back-reference.
        """
        pass
