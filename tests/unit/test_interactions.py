from __future__ import annotations

import random

import pytest

from src.app.domain.errors import InvalidArgumentError, RecipeNotFoundError, UnavailableError, WriteConflictError
from src.app.domain.models import Recipe
from src.app.infra.db.memory_repo import InMemoryProfileRepository, InMemoryRecipeRepository
from src.app.services.interactions import InteractionAggregator
from tests.factories import make_recipe


class RacingRecipeRepository(InMemoryRecipeRepository):
    """Loses the first `conflicts` compare-and-set writes, as if another writer got there first."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts
        self.replace_calls = 0

    def replace(self, recipe: Recipe, expected_version: int) -> bool:
        self.replace_calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            stored = self.get(recipe.id)
            stored.likes.append(f"racer-{self.replace_calls}")
            stored.sync_counters()
            stored.version = expected_version + 1
            super().replace(stored, expected_version)
            return False
        return super().replace(recipe, expected_version)


class FailingProfileRepository(InMemoryProfileRepository):
    def set_saved_recipe(self, uid: str, recipe_id: str, saved: bool) -> None:
        raise UnavailableError("profile update", "connection reset")


class BrokenRecipeRepository(InMemoryRecipeRepository):
    def replace(self, recipe: Recipe, expected_version: int) -> bool:
        raise RuntimeError("disk on fire")


@pytest.fixture
def recipe_id(recipes: InMemoryRecipeRepository) -> str:
    return recipes.insert(make_recipe(0)).id


class TestToggleLike:
    def test_like_then_unlike_restores_state(
        self, interactions: InteractionAggregator, recipes: InMemoryRecipeRepository, recipe_id: str
    ) -> None:
        liked = interactions.toggle_like(recipe_id, "u1")
        assert liked.active is True
        assert liked.count == 1

        unliked = interactions.toggle_like(recipe_id, "u1")
        assert unliked.active is False
        assert unliked.count == 0

        stored = recipes.get(recipe_id)
        assert stored.likes == []
        assert stored.likes_count == 0

    def test_count_matches_set_after_any_sequence(
        self, interactions: InteractionAggregator, recipes: InMemoryRecipeRepository, recipe_id: str
    ) -> None:
        rng = random.Random(42)
        for _ in range(60):
            interactions.toggle_like(recipe_id, f"user-{rng.randint(1, 6)}")

        stored = recipes.get(recipe_id)
        assert stored.likes_count == len(stored.likes)
        assert len(stored.likes) == len(set(stored.likes))

    def test_missing_recipe(self, interactions: InteractionAggregator) -> None:
        with pytest.raises(RecipeNotFoundError):
            interactions.toggle_like("nope", "u1")

    def test_retries_after_losing_a_race(self, profiles: InMemoryProfileRepository) -> None:
        recipes = RacingRecipeRepository(conflicts=2)
        recipe_id = recipes.insert(make_recipe(0)).id
        aggregator = InteractionAggregator(recipes, profiles)

        result = aggregator.toggle_like(recipe_id, "u1")

        stored = recipes.get(recipe_id)
        assert result.active is True
        assert result.count == 3
        assert stored.likes_count == 3
        assert "u1" in stored.likes
        assert recipes.replace_calls == 3

    def test_gives_up_after_max_attempts(self, profiles: InMemoryProfileRepository) -> None:
        recipes = RacingRecipeRepository(conflicts=10)
        recipe_id = recipes.insert(make_recipe(0)).id
        aggregator = InteractionAggregator(recipes, profiles, max_write_attempts=3)

        with pytest.raises(WriteConflictError) as exc_info:
            aggregator.toggle_like(recipe_id, "u1")

        assert exc_info.value.attempts == 3
        assert "u1" not in recipes.get(recipe_id).likes


class TestToggleSave:
    def test_mirrors_into_profile(
        self, interactions: InteractionAggregator, profiles: InMemoryProfileRepository, recipe_id: str
    ) -> None:
        saved = interactions.toggle_save(recipe_id, "u1")
        assert saved.active is True
        assert saved.count == 1
        assert profiles.get_profile("u1").saved_recipes == [recipe_id]

        unsaved = interactions.toggle_save(recipe_id, "u1")
        assert unsaved.active is False
        assert profiles.get_profile("u1").saved_recipes == []

    def test_profile_failure_is_reported(self, recipes: InMemoryRecipeRepository, recipe_id: str) -> None:
        aggregator = InteractionAggregator(recipes, FailingProfileRepository())

        with pytest.raises(UnavailableError):
            aggregator.toggle_save(recipe_id, "u1")

        assert recipes.get(recipe_id).saves == ["u1"]


class TestRate:
    def test_scenario_same_user_rates_twice(
        self, interactions: InteractionAggregator, recipes: InMemoryRecipeRepository, recipe_id: str
    ) -> None:
        interactions.rate(recipe_id, "u1", 3)
        summary = interactions.rate(recipe_id, "u1", 5)

        assert summary.user_rating == 5
        assert summary.rating_sum == 5
        assert summary.rating_count == 1
        assert recipes.get(recipe_id).ratings == {"u1": 5}

    def test_sum_and_count_follow_ratings(
        self, interactions: InteractionAggregator, recipes: InMemoryRecipeRepository, recipe_id: str
    ) -> None:
        rng = random.Random(7)
        for _ in range(40):
            interactions.rate(recipe_id, f"user-{rng.randint(1, 5)}", rng.randint(1, 5))

        stored = recipes.get(recipe_id)
        assert stored.rating_sum == sum(stored.ratings.values())
        assert stored.rating_count == len(stored.ratings)

    def test_average(self, interactions: InteractionAggregator, recipe_id: str) -> None:
        interactions.rate(recipe_id, "u1", 4)
        summary = interactions.rate(recipe_id, "u2", 5)
        assert summary.average == 4.5

    @pytest.mark.parametrize("value", [0, 6, -1, 3.5, "5", True, None])
    def test_rejects_out_of_range(self, interactions: InteractionAggregator, recipe_id: str, value) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            interactions.rate(recipe_id, "u1", value)
        assert exc_info.value.argument == "rating"


class TestIncrementView:
    def test_returns_new_count(self, interactions: InteractionAggregator, recipe_id: str) -> None:
        assert interactions.increment_view(recipe_id) == 1
        assert interactions.increment_view(recipe_id) == 2

    def test_missing_recipe_returns_none(self, interactions: InteractionAggregator) -> None:
        assert interactions.increment_view("nope") is None

    def test_unexpected_error_returns_none(self, profiles: InMemoryProfileRepository) -> None:
        recipes = BrokenRecipeRepository()
        recipe_id = recipes.insert(make_recipe(0)).id

        assert InteractionAggregator(recipes, profiles).increment_view(recipe_id) is None
