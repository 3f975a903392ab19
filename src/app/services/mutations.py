from __future__ import annotations

import logging
from typing import Callable, TypeVar

from src.app.domain.errors import ForbiddenError, RecipeNotFoundError, WriteConflictError
from src.app.domain.models import Recipe
from src.app.infra.db.base import RecipeRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WRITE_ATTEMPTS = 5


def require_owner(recipe: Recipe, user_id: str) -> None:
    if not recipe.is_owned_by(user_id):
        raise ForbiddenError("Only the recipe owner can change this recipe")


def apply_to_recipe(
    repository: RecipeRepository,
    recipe_id: str,
    change: Callable[[Recipe], T],
    max_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS,
) -> tuple[Recipe, T]:
    """
    Read a recipe, apply `change` to it and write it back atomically.

    The write only lands if the stored version is still the one that was
    read; otherwise the change is applied again to a fresh copy. Counters are
    recomputed from their collections before every write.

    Returns:
        The written recipe and whatever `change` returned

    Raises:
        RecipeNotFoundError: If the recipe does not exist (or vanished)
        WriteConflictError: If every attempt lost the race
    """
    for attempt in range(1, max_attempts + 1):
        recipe = repository.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)

        expected_version = recipe.version
        result = change(recipe)
        recipe.sync_counters()
        recipe.version = expected_version + 1

        if repository.replace(recipe, expected_version):
            return recipe, result

        logger.info("Write conflict on recipe %s, attempt %d/%d", recipe_id, attempt, max_attempts)

    raise WriteConflictError(recipe_id, max_attempts)
