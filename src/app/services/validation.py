# src/app/services/validation.py
"""
Validation and normalisation of recipe drafts and patches.

Input comes straight from forms, so numbers may arrive as strings and list
editors may contain blank rows. Every problem is collected per field and
reported together in a single ValidationError.
"""
from __future__ import annotations

import math
from typing import Any, Mapping

from src.app.domain.errors import ValidationError
from src.app.domain.models import Difficulty, Ingredient, Nutrition

REQUIRED_TEXT_FIELDS = ("title", "description", "category")
REQUIRED_INT_FIELDS = {"prep_time": 0, "cook_time": 0, "servings": 1}
NUTRITION_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")

EDITABLE_FIELDS = frozenset(
    (
        *REQUIRED_TEXT_FIELDS,
        *REQUIRED_INT_FIELDS,
        "difficulty",
        "tags",
        "ingredients",
        "instructions",
        "tips",
        "nutrition",
        "images",
        "is_featured",
    )
)

_LABELS = {
    "title": "Title",
    "description": "Description",
    "category": "Category",
    "prep_time": "Prep time",
    "cook_time": "Cook time",
    "servings": "Servings",
}


def _clean_str(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    # "nan" and "inf" parse as floats but cannot be stored
    return number if math.isfinite(number) else None


def _to_bool(value: Any) -> bool | None:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return {"true": True, "false": False, "": False}.get(value.strip().lower())
    return None


def _clean_text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("step") if "step" in item else item.get("text")
        text = _clean_str(item)
        if text:
            out.append(text)
    return out


def _clean_tags(value: Any) -> list[str]:
    tags: list[str] = []
    for tag in _clean_text_list(value):
        normalized = tag.lower()
        if normalized not in tags:
            tags.append(normalized)
    return tags


def _clean_ingredients(value: Any, errors: dict[str, str]) -> list[Ingredient]:
    if value is not None and not isinstance(value, list):
        errors["ingredients"] = "Ingredients must be a list"
        return []
    items: list[Ingredient] = []
    for entry in value or []:
        if not isinstance(entry, Mapping):
            errors["ingredients"] = "Each ingredient needs a name and amount"
            continue
        name = _clean_str(entry.get("name"))
        amount = _clean_str(entry.get("amount"))
        if not name and not amount:
            continue
        if not name or not amount:
            errors["ingredients"] = "All ingredients must have a name and amount"
            continue
        items.append(Ingredient(name=name, amount=amount))
    if not items and "ingredients" not in errors:
        errors["ingredients"] = "At least one ingredient is required"
    return items


def _clean_nutrition(value: Any, errors: dict[str, str]) -> Nutrition:
    if value is None:
        return Nutrition()
    if not isinstance(value, Mapping):
        errors["nutrition"] = "Nutrition must be an object"
        return Nutrition()
    facts: dict[str, float | None] = {}
    for name in NUTRITION_FIELDS:
        raw = value.get(name)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            facts[name] = None
            continue
        number = _to_number(raw)
        if number is None or number < 0:
            errors[f"nutrition.{name}"] = f"{name.capitalize()} must be a non-negative number"
            facts[name] = None
        else:
            facts[name] = number
    return Nutrition(**facts)


def _clean_difficulty(value: Any, errors: dict[str, str]) -> Difficulty:
    text = _clean_str(value)
    if text is None:
        return Difficulty.MEDIUM
    for level in Difficulty:
        if level.value.lower() == text.lower():
            return level
    errors["difficulty"] = "Difficulty must be Easy, Medium or Hard"
    return Difficulty.MEDIUM


def _clean_images(value: Any, errors: dict[str, str]) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(url, str) and url.strip() for url in value):
        errors["images"] = "Images must be a list of URLs"
        return []
    return [url.strip() for url in value]


def _validate_field(name: str, value: Any, errors: dict[str, str]) -> Any:
    if name in REQUIRED_TEXT_FIELDS:
        text = _clean_str(value)
        if not text:
            errors[name] = f"{_LABELS[name]} is required"
        return text
    if name in REQUIRED_INT_FIELDS:
        if _clean_str(value) is None:
            errors[name] = f"{_LABELS[name]} is required"
            return None
        number = _to_int(value)
        minimum = REQUIRED_INT_FIELDS[name]
        if number is None:
            errors[name] = f"{_LABELS[name]} must be a whole number"
        elif number < minimum:
            errors[name] = f"{_LABELS[name]} must be at least {minimum}"
        return number
    if name == "difficulty":
        return _clean_difficulty(value, errors)
    if name == "tags":
        return _clean_tags(value)
    if name == "ingredients":
        return _clean_ingredients(value, errors)
    if name == "instructions":
        steps = _clean_text_list(value)
        if not steps:
            errors["instructions"] = "At least one instruction step is required"
        return steps
    if name == "tips":
        return _clean_text_list(value)
    if name == "nutrition":
        return _clean_nutrition(value, errors)
    if name == "images":
        return _clean_images(value, errors)
    if name == "is_featured":
        flag = _to_bool(value)
        if flag is None:
            errors["is_featured"] = "Featured must be true or false"
            return False
        return flag
    raise KeyError(name)


def validate_draft(draft: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate a complete recipe draft.

    Returns:
        Cleaned values for every editable field

    Raises:
        ValidationError: With one message per offending field
    """
    errors: dict[str, str] = {}
    unknown = sorted(set(draft) - EDITABLE_FIELDS)
    for name in unknown:
        errors[name] = "Unknown field"

    cleaned = {name: _validate_field(name, draft.get(name), errors) for name in sorted(EDITABLE_FIELDS)}
    if errors:
        raise ValidationError(errors)
    return cleaned


def validate_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate a partial update; only the keys present are checked.

    Raises:
        ValidationError: If the patch is empty, touches fields that are not
            editable, or carries invalid values
    """
    if not patch:
        raise ValidationError({"patch": "Nothing to update"})

    errors: dict[str, str] = {}
    for name in sorted(set(patch) - EDITABLE_FIELDS):
        errors[name] = "Field cannot be edited"

    cleaned = {
        name: _validate_field(name, value, errors)
        for name, value in patch.items()
        if name in EDITABLE_FIELDS
    }
    if errors:
        raise ValidationError(errors)
    return cleaned
