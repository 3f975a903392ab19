from __future__ import annotations

import pytest

from src.app.domain.models import UserIdentity
from src.app.infra.db.memory_repo import InMemoryProfileRepository, InMemoryRecipeRepository
from src.app.services.comments import CommentService
from src.app.services.interactions import InteractionAggregator
from src.app.services.recipe_store import RecipeStore


@pytest.fixture
def owner() -> UserIdentity:
    return UserIdentity(uid="owner-1", email="owner@example.com", display_name="Olivia", photo_url="https://img/o.png")


@pytest.fixture
def stranger() -> UserIdentity:
    return UserIdentity(uid="stranger-1", email="stranger@example.com", display_name="Sam")


@pytest.fixture
def recipes() -> InMemoryRecipeRepository:
    return InMemoryRecipeRepository()


@pytest.fixture
def profiles() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def interactions(recipes: InMemoryRecipeRepository, profiles: InMemoryProfileRepository) -> InteractionAggregator:
    return InteractionAggregator(recipes, profiles)


@pytest.fixture
def store(recipes: InMemoryRecipeRepository, interactions: InteractionAggregator) -> RecipeStore:
    return RecipeStore(recipes, interactions)


@pytest.fixture
def comments(recipes: InMemoryRecipeRepository) -> CommentService:
    return CommentService(recipes)
