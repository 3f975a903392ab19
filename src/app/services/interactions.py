# src/app/services/interactions.py
"""
Likes, saves, ratings and view counts.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.errors import InvalidArgumentError, RecipeHubError, UnavailableError
from src.app.domain.models import RatingSummary, Recipe, ToggleResult
from src.app.infra.db.base import ProfileRepository, RecipeRepository
from src.app.services.mutations import DEFAULT_MAX_WRITE_ATTEMPTS, apply_to_recipe

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _toggle_member(members: list[str], user_id: str) -> bool:
    """Flip membership of `user_id`; returns the new membership."""
    if user_id in members:
        members[:] = [member for member in members if member != user_id]
        return False
    members.append(user_id)
    return True


class InteractionAggregator:
    """
    Service for per-user interactions with a recipe.

    Every command re-reads the recipe before applying the user's intent and
    returns the state that was actually written.
    """

    def __init__(
        self,
        recipes: RecipeRepository,
        profiles: ProfileRepository,
        max_write_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS,
    ):
        self._recipes = recipes
        self._profiles = profiles
        self.max_write_attempts = max_write_attempts

    def toggle_like(self, recipe_id: str, user_id: str) -> ToggleResult:
        """
        Like the recipe, or remove the like if the user already liked it.

        Calling this twice restores the original state; callers wanting
        "like" rather than "toggle" must check the current state first.
        """
        recipe, active = apply_to_recipe(
            self._recipes,
            recipe_id,
            lambda r: _toggle_member(r.likes, user_id),
            self.max_write_attempts,
        )
        logger.info("Like toggled: recipe=%s, user=%s, liked=%s, count=%d", recipe_id, user_id, active, recipe.likes_count)
        return ToggleResult(active=active, count=recipe.likes_count)

    def toggle_save(self, recipe_id: str, user_id: str) -> ToggleResult:
        """
        Save or unsave the recipe, mirroring the result into the user's
        profile so "my saved recipes" can be listed from either side.

        Raises:
            UnavailableError: If the profile mirror could not be updated; the
                recipe itself has already been written
        """
        recipe, active = apply_to_recipe(
            self._recipes,
            recipe_id,
            lambda r: _toggle_member(r.saves, user_id),
            self.max_write_attempts,
        )
        logger.info("Save toggled: recipe=%s, user=%s, saved=%s, count=%d", recipe_id, user_id, active, recipe.saves_count)

        try:
            self._profiles.set_saved_recipe(user_id, recipe_id, active)
        except UnavailableError:
            logger.error("Saved-recipes mirror out of date: user=%s, recipe=%s, saved=%s", user_id, recipe_id, active)
            raise
        return ToggleResult(active=active, count=recipe.saves_count)

    def rate(self, recipe_id: str, user_id: str, value: int) -> RatingSummary:
        """
        Record the user's rating, replacing any earlier rating by them.

        Raises:
            InvalidArgumentError: If value is not an integer from 1 to 5
        """
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_RATING <= value <= MAX_RATING:
            raise InvalidArgumentError("rating", f"must be an integer from {MIN_RATING} to {MAX_RATING}")

        def change(recipe: Recipe) -> Optional[int]:
            previous = recipe.ratings.get(user_id)
            recipe.ratings[user_id] = value
            return previous

        recipe, previous = apply_to_recipe(self._recipes, recipe_id, change, self.max_write_attempts)
        logger.info(
            "Recipe rated: recipe=%s, user=%s, value=%d, previous=%s, sum=%d, count=%d",
            recipe_id,
            user_id,
            value,
            previous,
            recipe.rating_sum,
            recipe.rating_count,
        )
        return RatingSummary(user_rating=value, rating_sum=recipe.rating_sum, rating_count=recipe.rating_count)

    def increment_view(self, recipe_id: str) -> Optional[int]:
        """
        Count one view. Never raises: views are best-effort and must not
        break the read that triggered them.

        Returns:
            The new view count, or None if the increment failed
        """
        def change(recipe: Recipe) -> int:
            recipe.view_count += 1
            return recipe.view_count

        try:
            _, count = apply_to_recipe(self._recipes, recipe_id, change, self.max_write_attempts)
        except RecipeHubError as error:
            logger.warning("View not counted for recipe %s: %s", recipe_id, error)
            return None
        except Exception:
            logger.exception("Unexpected error counting view for recipe %s", recipe_id)
            return None
        return count
