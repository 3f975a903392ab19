"""
Keyset pagination cursors.

A cursor captures the sort key and ID of the last recipe on a page. Listings
are ordered by (sort key desc, id desc), so the next page holds the recipes
strictly after that pair and stays stable when new recipes are inserted.
"""
from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime, timezone
from typing import Union

from src.app.domain.errors import InvalidArgumentError
from src.app.domain.models import Recipe, RecipeSort

SortValue = Union[datetime, int]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def sort_value(recipe: Recipe, sort: RecipeSort) -> SortValue:
    if sort is RecipeSort.POPULAR:
        return recipe.likes_count
    if sort is RecipeSort.VIEWS:
        return recipe.view_count
    return recipe.created_at or _EPOCH


def order_key(recipe: Recipe, sort: RecipeSort) -> tuple[SortValue, str]:
    return sort_value(recipe, sort), recipe.id


def encode_cursor(recipe: Recipe, sort: RecipeSort) -> str:
    value = sort_value(recipe, sort)
    payload = {
        "s": sort.value,
        "k": value.isoformat() if isinstance(value, datetime) else value,
        "id": recipe.id,
    }
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: str, sort: RecipeSort) -> tuple[SortValue, str]:
    padded = token + "=" * (-len(token) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise InvalidArgumentError("cursor", "malformed cursor") from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
        raise InvalidArgumentError("cursor", "malformed cursor")
    if payload.get("s") != sort.value:
        raise InvalidArgumentError("cursor", "cursor belongs to a different sort order")

    raw_value = payload.get("k")
    if sort is RecipeSort.NEWEST:
        if not isinstance(raw_value, str):
            raise InvalidArgumentError("cursor", "malformed cursor")
        try:
            value: SortValue = datetime.fromisoformat(raw_value)
        except ValueError as exc:
            raise InvalidArgumentError("cursor", "malformed cursor") from exc
    else:
        if not isinstance(raw_value, int) or isinstance(raw_value, bool):
            raise InvalidArgumentError("cursor", "malformed cursor")
        value = raw_value
    return value, payload["id"]


def comes_after(recipe: Recipe, sort: RecipeSort, cursor: tuple[SortValue, str]) -> bool:
    """True when `recipe` sorts strictly after the cursor position."""
    return order_key(recipe, sort) < cursor
