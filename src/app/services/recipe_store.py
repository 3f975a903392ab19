# src/app/services/recipe_store.py
"""
Recipe Store: lifecycle of recipe documents.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from src.app.domain.cursors import decode_cursor, encode_cursor
from src.app.domain.errors import InvalidArgumentError, RecipeNotFoundError
from src.app.domain.models import (
    Recipe,
    RecipeFilter,
    RecipePage,
    RecipeSort,
    UserIdentity,
)
from src.app.infra.db.base import RecipeRepository
from src.app.infra.storage.base import StorageProvider
from src.app.services.interactions import InteractionAggregator
from src.app.services.mutations import DEFAULT_MAX_WRITE_ATTEMPTS, apply_to_recipe, require_owner
from src.app.services.validation import validate_draft, validate_patch

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50


class RecipeStore:
    """
    Service for creating, reading, editing and listing recipes.

    Responsibilities:
    - Validate drafts and patches before anything is written
    - Enforce that only the owner edits or deletes a recipe
    - Count a view on every successful read
    - Cursor-based listing
    """

    def __init__(
        self,
        recipes: RecipeRepository,
        interactions: InteractionAggregator,
        storage: Optional[StorageProvider] = None,
        max_write_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS,
    ):
        self._recipes = recipes
        self._interactions = interactions
        self._storage = storage
        self.max_write_attempts = max_write_attempts

    def create(self, draft: Mapping[str, Any], owner: UserIdentity) -> Recipe:
        """
        Validate and store a new recipe owned by `owner`.

        Raises:
            ValidationError: If any field is missing or malformed; nothing is stored
        """
        fields = validate_draft(draft)
        now = datetime.now(timezone.utc)
        recipe = Recipe(
            id="",
            user_id=owner.uid,
            user_name=owner.display_name or "Anonymous",
            user_photo_url=owner.photo_url,
            created_at=now,
            updated_at=now,
            **fields,
        )
        recipe.sync_counters()

        stored = self._recipes.insert(recipe)
        logger.info("Recipe created: id=%s, owner=%s, title=%r", stored.id, owner.uid, stored.title)
        return stored

    def update(self, recipe_id: str, owner_id: str, patch: Mapping[str, Any]) -> Recipe:
        """
        Merge `patch` into the recipe's content fields.

        Raises:
            RecipeNotFoundError: If the recipe does not exist
            ValidationError: If the patch is invalid or touches non-editable fields
            ForbiddenError: If `owner_id` does not own the recipe
        """
        if self._recipes.get(recipe_id) is None:
            raise RecipeNotFoundError(recipe_id)
        fields = validate_patch(patch)

        def change(recipe: Recipe) -> None:
            require_owner(recipe, owner_id)
            for name, value in fields.items():
                setattr(recipe, name, value)
            recipe.updated_at = datetime.now(timezone.utc)

        recipe, _ = apply_to_recipe(self._recipes, recipe_id, change, self.max_write_attempts)
        logger.info("Recipe updated: id=%s, fields=%s", recipe_id, sorted(fields))
        return recipe

    def delete(self, recipe_id: str, owner_id: str) -> None:
        """
        Permanently delete a recipe and its comments.

        Raises:
            RecipeNotFoundError: If the recipe does not exist
            ForbiddenError: If `owner_id` does not own the recipe
        """
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        require_owner(recipe, owner_id)

        if not self._recipes.delete(recipe_id):
            raise RecipeNotFoundError(recipe_id)
        logger.info("Recipe deleted: id=%s, owner=%s, comments=%d", recipe_id, owner_id, len(recipe.comments))

        self._delete_images(recipe)

    def get(self, recipe_id: str) -> Recipe:
        """
        Fetch a recipe and count the view.

        Every successful read counts, repeat views and the owner's own
        included. The returned recipe carries the new count when the
        increment succeeded.

        Raises:
            RecipeNotFoundError: If the recipe does not exist
        """
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)

        view_count = self._interactions.increment_view(recipe_id)
        if view_count is not None:
            recipe.view_count = view_count
        return recipe

    def list(
        self,
        recipe_filter: Optional[RecipeFilter] = None,
        sort: RecipeSort = RecipeSort.NEWEST,
        page_size: int = DEFAULT_PAGE_SIZE,
        cursor: Optional[str] = None,
    ) -> RecipePage:
        """
        List one page of recipes.

        Raises:
            InvalidArgumentError: For an out-of-range page size or a bad cursor
        """
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise InvalidArgumentError("page_size", f"must be between 1 and {MAX_PAGE_SIZE}")

        after = decode_cursor(cursor, sort) if cursor else None
        # one extra row tells whether another page exists
        rows = self._recipes.query(recipe_filter or RecipeFilter(), sort, page_size + 1, after)
        items = rows[:page_size]
        next_cursor = encode_cursor(items[-1], sort) if len(rows) > page_size else None
        return RecipePage(items=items, next_cursor=next_cursor)

    def similar(self, recipe_id: str, limit: int = 3) -> list[Recipe]:
        """Other recipes from the same category; does not count views."""
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        rows = self._recipes.query(RecipeFilter(category=recipe.category), RecipeSort.NEWEST, limit + 1)
        return [r for r in rows if r.id != recipe_id][:limit]

    def _delete_images(self, recipe: Recipe) -> None:
        if self._storage is None:
            return
        for url in recipe.images:
            key = self._storage.key_from_url(url)
            if key is None:
                continue
            if not self._storage.delete_object(key):
                logger.warning("Orphaned image left in storage: recipe=%s, key=%s", recipe.id, key)
