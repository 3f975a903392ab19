from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from src.app.domain.models import (
    Comment,
    Difficulty,
    Ingredient,
    Nutrition,
    Recipe,
    UserProfile,
)

Row = dict[str, Any]

_NUTRITION_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")

# PostgREST trims trailing zeros from fractional seconds
_FRACTION = re.compile(r"\.(\d{1,6})\d*(?=[+-]\d{2}:?\d{2}$|$)")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        normalized = _FRACTION.sub(lambda m: "." + m.group(1).ljust(6, "0"), normalized)
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _safe_int(value: object, default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _parse_difficulty(value: object) -> Difficulty:
    try:
        return Difficulty(str(value))
    except ValueError:
        return Difficulty.MEDIUM


def _parse_nutrition(value: object) -> Nutrition:
    if not isinstance(value, dict):
        return Nutrition()
    facts: dict[str, float | None] = {}
    for name in _NUTRITION_FIELDS:
        raw = value.get(name)
        facts[name] = float(raw) if isinstance(raw, (int, float)) and not isinstance(raw, bool) else None
    return Nutrition(**facts)


def _parse_ratings(value: object) -> dict[str, int]:
    if not isinstance(value, dict):
        return {}
    return {str(uid): _safe_int(score) for uid, score in value.items()}


def row_to_comment(row: Row) -> Comment:
    return Comment(
        id=str(row["id"]),
        user_id=str(row.get("user_id") or ""),
        text=str(row.get("text") or ""),
        created_at=parse_datetime(row.get("created_at")) or now_utc(),
        user_name=_safe_str(row.get("user_name")),
        user_photo_url=_safe_str(row.get("user_photo_url")),
    )


def comment_to_row(comment: Comment) -> Row:
    return {
        "id": comment.id,
        "user_id": comment.user_id,
        "user_name": comment.user_name,
        "user_photo_url": comment.user_photo_url,
        "text": comment.text,
        "created_at": format_datetime(comment.created_at),
    }


def row_to_recipe(row: Row) -> Recipe:
    ingredients = [
        Ingredient(name=str(item.get("name") or ""), amount=str(item.get("amount") or ""))
        for item in row.get("ingredients") or []
        if isinstance(item, dict)
    ]
    comments = [
        row_to_comment(item)
        for item in row.get("comments") or []
        if isinstance(item, dict) and item.get("id")
    ]
    return Recipe(
        id=str(row["id"]),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        category=str(row.get("category") or ""),
        prep_time=_safe_int(row.get("prep_time")),
        cook_time=_safe_int(row.get("cook_time")),
        servings=_safe_int(row.get("servings"), 1),
        user_id=str(row.get("user_id") or ""),
        difficulty=_parse_difficulty(row.get("difficulty")),
        tags=_str_list(row.get("tags")),
        ingredients=ingredients,
        instructions=_str_list(row.get("instructions")),
        tips=_str_list(row.get("tips")),
        nutrition=_parse_nutrition(row.get("nutrition")),
        images=_str_list(row.get("images")),
        user_name=_safe_str(row.get("user_name")),
        user_photo_url=_safe_str(row.get("user_photo_url")),
        is_featured=bool(row.get("is_featured")),
        view_count=_safe_int(row.get("view_count")),
        likes=_str_list(row.get("likes")),
        likes_count=_safe_int(row.get("likes_count")),
        saves=_str_list(row.get("saves")),
        saves_count=_safe_int(row.get("saves_count")),
        ratings=_parse_ratings(row.get("ratings")),
        rating_sum=_safe_int(row.get("rating_sum")),
        rating_count=_safe_int(row.get("rating_count")),
        comments=comments,
        created_at=parse_datetime(row.get("created_at")),
        updated_at=parse_datetime(row.get("updated_at")),
        version=_safe_int(row.get("version")),
    )


def recipe_to_row(recipe: Recipe) -> Row:
    return {
        "id": recipe.id,
        "title": recipe.title,
        "description": recipe.description,
        "category": recipe.category,
        "difficulty": recipe.difficulty.value,
        "prep_time": recipe.prep_time,
        "cook_time": recipe.cook_time,
        "servings": recipe.servings,
        "tags": list(recipe.tags),
        "ingredients": [{"name": item.name, "amount": item.amount} for item in recipe.ingredients],
        "instructions": list(recipe.instructions),
        "tips": list(recipe.tips),
        "nutrition": {name: getattr(recipe.nutrition, name) for name in _NUTRITION_FIELDS},
        "images": list(recipe.images),
        "user_id": recipe.user_id,
        "user_name": recipe.user_name,
        "user_photo_url": recipe.user_photo_url,
        "is_featured": recipe.is_featured,
        "view_count": recipe.view_count,
        "likes": list(recipe.likes),
        "likes_count": recipe.likes_count,
        "saves": list(recipe.saves),
        "saves_count": recipe.saves_count,
        "ratings": dict(recipe.ratings),
        "rating_sum": recipe.rating_sum,
        "rating_count": recipe.rating_count,
        "comments": [comment_to_row(comment) for comment in recipe.comments],
        "created_at": format_datetime(recipe.created_at),
        "updated_at": format_datetime(recipe.updated_at),
        "version": recipe.version,
    }


def row_to_profile(row: Row) -> UserProfile:
    return UserProfile(
        uid=str(row["uid"]),
        display_name=_safe_str(row.get("display_name")),
        email=_safe_str(row.get("email")),
        photo_url=_safe_str(row.get("photo_url")),
        saved_recipes=_str_list(row.get("saved_recipes")),
        created_at=parse_datetime(row.get("created_at")),
    )


def profile_to_row(profile: UserProfile) -> Row:
    return {
        "uid": profile.uid,
        "display_name": profile.display_name,
        "email": profile.email,
        "photo_url": profile.photo_url,
        "saved_recipes": list(profile.saved_recipes),
        "created_at": format_datetime(profile.created_at),
    }
