from __future__ import annotations

from src.app.domain.errors import (
    AuthenticationError,
    AuthenticationRequiredError,
    CommentNotFoundError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    RecipeHubError,
    RecipeNotFoundError,
    StorageError,
    UnavailableError,
    UploadCancelledError,
    ValidationError,
    WriteConflictError,
)


class TestRecipeHubError:
    def test_base_exception(self) -> None:
        error = RecipeHubError("Base error")
        assert str(error) == "Base error"
        assert isinstance(error, Exception)


class TestValidationError:
    def test_keeps_per_field_errors(self) -> None:
        error = ValidationError({"title": "Title is required", "servings": "Servings is required"})
        assert error.errors == {"title": "Title is required", "servings": "Servings is required"}
        assert "title: Title is required" in str(error)

    def test_custom_message(self) -> None:
        error = ValidationError({"title": "Title is required"}, "Recipe is invalid")
        assert str(error) == "Recipe is invalid"


class TestInvalidArgumentError:
    def test_includes_argument_and_reason(self) -> None:
        error = InvalidArgumentError("rating", "must be an integer from 1 to 5")
        assert error.argument == "rating"
        assert error.reason == "must be an integer from 1 to 5"
        assert error.errors == {"rating": "must be an integer from 1 to 5"}
        assert "rating" in str(error)

    def test_is_a_validation_error(self) -> None:
        assert isinstance(InvalidArgumentError("cursor", "bad"), ValidationError)


class TestForbiddenError:
    def test_default_message(self) -> None:
        assert str(ForbiddenError()) == "Operation not allowed"


class TestNotFoundErrors:
    def test_recipe_not_found_includes_id(self) -> None:
        error = RecipeNotFoundError("abc-123")
        assert "abc-123" in str(error)
        assert error.recipe_id == "abc-123"
        assert isinstance(error, NotFoundError)

    def test_comment_not_found_includes_both_ids(self) -> None:
        error = CommentNotFoundError("recipe-1", "1700000000000")
        assert error.recipe_id == "recipe-1"
        assert error.comment_id == "1700000000000"
        assert "1700000000000" in str(error)
        assert isinstance(error, NotFoundError)


class TestUnavailableErrors:
    def test_includes_operation_and_reason(self) -> None:
        error = UnavailableError("query", "connection reset")
        assert error.operation == "query"
        assert error.reason == "connection reset"
        assert "query" in str(error)
        assert "connection reset" in str(error)

    def test_storage_error(self) -> None:
        error = StorageError("recipes/u1/a.jpg", "Access denied")
        assert error.object_key == "recipes/u1/a.jpg"
        assert error.operation == "storage"
        assert "Access denied" in str(error)
        assert isinstance(error, UnavailableError)

    def test_write_conflict(self) -> None:
        error = WriteConflictError("recipe-1", 5)
        assert error.recipe_id == "recipe-1"
        assert error.attempts == 5
        assert isinstance(error, UnavailableError)


class TestUploadCancelledError:
    def test_includes_object_key(self) -> None:
        error = UploadCancelledError("recipes/u1/a.jpg")
        assert error.object_key == "recipes/u1/a.jpg"


class TestAuthenticationErrors:
    def test_default_messages(self) -> None:
        assert str(AuthenticationError()) == "Invalid credentials"
        assert str(AuthenticationRequiredError()) == "Sign in required"

    def test_required_is_authentication_error(self) -> None:
        assert isinstance(AuthenticationRequiredError(), AuthenticationError)


class TestErrorHierarchy:
    def test_all_errors_share_base(self) -> None:
        errors = [
            ValidationError({}),
            InvalidArgumentError("a", "b"),
            ForbiddenError(),
            RecipeNotFoundError("r"),
            CommentNotFoundError("r", "c"),
            UnavailableError("op", "why"),
            StorageError("k", "why"),
            WriteConflictError("r", 1),
            UploadCancelledError("k"),
            AuthenticationError(),
            AuthenticationRequiredError(),
        ]
        for error in errors:
            assert isinstance(error, RecipeHubError)
