from __future__ import annotations

from datetime import datetime, timezone

from src.app.domain.models import Comment, Difficulty, Nutrition, UserProfile
from src.app.infra.db.records import (
    format_datetime,
    parse_datetime,
    profile_to_row,
    recipe_to_row,
    row_to_profile,
    row_to_recipe,
)
from tests.factories import make_recipe


class TestDatetimes:
    def test_parse_zulu(self) -> None:
        assert parse_datetime("2024-01-15T12:00:00Z") == datetime(2024, 1, 15, 12, tzinfo=timezone.utc)

    def test_short_fractional_seconds(self) -> None:
        expected = datetime(2024, 1, 15, 12, 0, 0, 123400, tzinfo=timezone.utc)
        assert parse_datetime("2024-01-15T12:00:00.1234+00:00") == expected
        assert parse_datetime("2024-01-15T12:00:00.5Z").microsecond == 500000
        assert parse_datetime("2024-01-15T12:00:00.12345678") is not None

    def test_naive_is_utc(self) -> None:
        assert parse_datetime("2024-01-15T12:00:00").tzinfo is not None

    def test_unparseable(self) -> None:
        assert parse_datetime("yesterday") is None
        assert parse_datetime(12) is None

    def test_format(self) -> None:
        assert format_datetime(datetime(2024, 1, 15, 12)) == "2024-01-15T12:00:00+00:00"
        assert format_datetime(None) is None


class TestRecipeRows:
    def test_row_uses_snake_case_columns(self) -> None:
        comment = Comment(id="1", user_id="u2", text="Yum", created_at=datetime(2024, 1, 15, tzinfo=timezone.utc))
        row = recipe_to_row(make_recipe(0, id="r1", likes=["u2"], ratings={"u2": 4}, comments=[comment]))

        assert row["user_id"] == "owner-1"
        assert row["likes_count"] == 1
        assert row["rating_sum"] == 4
        assert row["difficulty"] == "Medium"
        assert row["comments"][0]["user_id"] == "u2"
        assert row["version"] == 0

        recipe = row_to_recipe(row)
        assert recipe.comments[0].text == "Yum"
        assert recipe.ratings == {"u2": 4}

    def test_tolerates_messy_rows(self) -> None:
        recipe = row_to_recipe(
            {
                "id": "r1",
                "title": "Soup",
                "servings": "lots",
                "difficulty": "Impossible",
                "tags": "not-a-list",
                "ingredients": [{"name": "Water", "amount": "1l"}, "junk"],
                "nutrition": {"calories": "many", "protein": 12},
                "comments": [{"text": "no id"}, {"id": "5", "text": "ok"}],
                "ratings": {"u1": "4"},
            }
        )

        assert recipe.servings == 1
        assert recipe.difficulty is Difficulty.MEDIUM
        assert recipe.tags == []
        assert [i.name for i in recipe.ingredients] == ["Water"]
        assert recipe.nutrition == Nutrition(protein=12.0)
        assert [c.id for c in recipe.comments] == ["5"]
        assert recipe.ratings == {"u1": 4}
        assert recipe.version == 0


class TestProfileRows:
    def test_profile_row(self) -> None:
        profile = UserProfile(uid="u1", display_name="Ana", saved_recipes=["r1"])

        restored = row_to_profile(profile_to_row(profile))

        assert restored.uid == "u1"
        assert restored.saved_recipes == ["r1"]
        assert restored.created_at is None
