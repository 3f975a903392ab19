from __future__ import annotations

import logging
from typing import Iterator

from src.app.domain.cursors import order_key
from src.app.domain.models import DashboardStats, Recipe, RecipeFilter, RecipeSort
from src.app.infra.db.base import RecipeRepository

logger = logging.getLogger(__name__)

BATCH_SIZE = 50


class AnalyticsService:
    """Totals shown on a user's dashboard."""

    def __init__(self, recipes: RecipeRepository, batch_size: int = BATCH_SIZE):
        self._recipes = recipes
        self.batch_size = batch_size

    def dashboard(self, user_id: str) -> DashboardStats:
        stats = DashboardStats()
        for recipe in self._iter_all(RecipeFilter(owner_id=user_id)):
            stats.total_recipes += 1
            stats.total_likes += recipe.likes_count
            stats.total_comments += len(recipe.comments)
            stats.total_views += recipe.view_count

        stats.total_saved = sum(1 for _ in self._iter_all(RecipeFilter(saved_by=user_id)))

        logger.info(
            "Dashboard computed: user=%s, recipes=%d, saved=%d",
            user_id,
            stats.total_recipes,
            stats.total_saved,
        )
        return stats

    def _iter_all(self, recipe_filter: RecipeFilter) -> Iterator[Recipe]:
        sort = RecipeSort.NEWEST
        after = None
        while True:
            batch = self._recipes.query(recipe_filter, sort, self.batch_size, after)
            yield from batch
            if len(batch) < self.batch_size:
                return
            after = order_key(batch[-1], sort)
