from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from src.app.domain.models import Ingredient, Recipe

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_draft(**overrides: Any) -> dict[str, Any]:
    draft: dict[str, Any] = {
        "title": "Pasta al limone",
        "description": "Bright and quick weeknight pasta",
        "category": "Dinner",
        "prep_time": "10",
        "cook_time": "30",
        "servings": "4",
        "ingredients": [{"name": "Spaghetti", "amount": "400g"}],
        "instructions": ["Boil the pasta"],
    }
    draft.update(overrides)
    return draft


def make_recipe(index: int = 0, **overrides: Any) -> Recipe:
    fields: dict[str, Any] = {
        "id": "",
        "title": f"Recipe {index}",
        "description": "A recipe",
        "category": "Dinner",
        "prep_time": 10,
        "cook_time": 20,
        "servings": 2,
        "user_id": "owner-1",
        "ingredients": [Ingredient(name="Salt", amount="1 pinch")],
        "instructions": ["Cook"],
        "created_at": BASE_TIME + timedelta(minutes=index),
    }
    fields.update(overrides)
    recipe = Recipe(**fields)
    recipe.sync_counters()
    return recipe
