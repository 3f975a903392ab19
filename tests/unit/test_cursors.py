from __future__ import annotations

import base64
import json
from datetime import datetime, timezone

import pytest

from src.app.domain.cursors import comes_after, decode_cursor, encode_cursor, order_key
from src.app.domain.errors import InvalidArgumentError
from src.app.domain.models import RecipeSort
from tests.factories import make_recipe


def _token(payload: object) -> str:
    raw = json.dumps(payload).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


class TestEncodeDecode:
    def test_newest_cursor_keeps_timestamp_and_id(self) -> None:
        recipe = make_recipe(3, id="r3")

        value, recipe_id = decode_cursor(encode_cursor(recipe, RecipeSort.NEWEST), RecipeSort.NEWEST)

        assert value == recipe.created_at
        assert recipe_id == "r3"

    def test_popular_cursor_uses_like_count(self) -> None:
        recipe = make_recipe(1, id="r1", likes=["a", "b", "c"])

        assert decode_cursor(encode_cursor(recipe, RecipeSort.POPULAR), RecipeSort.POPULAR) == (3, "r1")

    def test_cursor_is_url_safe(self) -> None:
        token = encode_cursor(make_recipe(1, id="r/+1"), RecipeSort.VIEWS)
        assert "=" not in token
        assert "+" not in token
        assert "/" not in token


class TestDecodeRejects:
    def test_garbage(self) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            decode_cursor("not-a-cursor!!", RecipeSort.NEWEST)
        assert exc_info.value.argument == "cursor"

    def test_cursor_from_other_sort(self) -> None:
        token = encode_cursor(make_recipe(1, id="r1"), RecipeSort.VIEWS)
        with pytest.raises(InvalidArgumentError):
            decode_cursor(token, RecipeSort.POPULAR)

    def test_wrong_value_type(self) -> None:
        with pytest.raises(InvalidArgumentError):
            decode_cursor(_token({"s": "views", "k": "ten", "id": "r1"}), RecipeSort.VIEWS)

    def test_bad_timestamp(self) -> None:
        with pytest.raises(InvalidArgumentError):
            decode_cursor(_token({"s": "newest", "k": "yesterday", "id": "r1"}), RecipeSort.NEWEST)

    def test_missing_id(self) -> None:
        with pytest.raises(InvalidArgumentError):
            decode_cursor(_token({"s": "views", "k": 1}), RecipeSort.VIEWS)


class TestOrdering:
    def test_order_key(self) -> None:
        recipe = make_recipe(2, id="r2", view_count=7)
        assert order_key(recipe, RecipeSort.VIEWS) == (7, "r2")

    def test_comes_after_breaks_ties_by_id(self) -> None:
        a = make_recipe(1, id="a", view_count=5)
        b = make_recipe(1, id="b", view_count=5)

        assert comes_after(a, RecipeSort.VIEWS, order_key(b, RecipeSort.VIEWS))
        assert not comes_after(b, RecipeSort.VIEWS, order_key(a, RecipeSort.VIEWS))

    def test_comes_after_by_timestamp(self) -> None:
        older = make_recipe(0, id="z")
        cursor = (datetime(2024, 1, 15, 12, 5, tzinfo=timezone.utc), "a")
        assert comes_after(older, RecipeSort.NEWEST, cursor)
