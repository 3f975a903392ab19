from __future__ import annotations

from datetime import datetime, timezone

from src.app.domain.models import Comment
from src.app.infra.db.memory_repo import InMemoryRecipeRepository
from src.app.services.analytics import AnalyticsService
from tests.factories import make_recipe


def _comment(i: int) -> Comment:
    return Comment(id=str(i), user_id="u", text="Nice", created_at=datetime(2024, 1, 15, tzinfo=timezone.utc))


class TestDashboard:
    def test_totals_over_own_recipes(self, recipes: InMemoryRecipeRepository) -> None:
        recipes.insert(make_recipe(0, likes=["a", "b"], view_count=10, comments=[_comment(1)]))
        recipes.insert(make_recipe(1, likes=["a"], view_count=5, comments=[_comment(2), _comment(3)]))
        recipes.insert(make_recipe(2, user_id="someone-else", likes=["x"], view_count=100, saves=["owner-1"]))

        stats = AnalyticsService(recipes).dashboard("owner-1")

        assert stats.total_recipes == 2
        assert stats.total_likes == 3
        assert stats.total_comments == 3
        assert stats.total_views == 15
        assert stats.total_saved == 1

    def test_pages_through_everything(self, recipes: InMemoryRecipeRepository) -> None:
        for i in range(7):
            recipes.insert(make_recipe(i, view_count=1))

        stats = AnalyticsService(recipes, batch_size=3).dashboard("owner-1")

        assert stats.total_recipes == 7
        assert stats.total_views == 7

    def test_new_user(self, recipes: InMemoryRecipeRepository) -> None:
        stats = AnalyticsService(recipes).dashboard("nobody")
        assert stats.total_recipes == 0
        assert stats.total_saved == 0
