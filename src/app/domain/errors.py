from __future__ import annotations


class RecipeHubError(Exception):
    pass


class ValidationError(RecipeHubError):
    def __init__(self, errors: dict[str, str], message: str | None = None):
        super().__init__(message or "; ".join(f"{field}: {reason}" for field, reason in errors.items()))
        self.errors = errors


class InvalidArgumentError(ValidationError):
    def __init__(self, argument: str, reason: str):
        super().__init__({argument: reason}, f"Invalid {argument}: {reason}")
        self.argument = argument
        self.reason = reason


class ForbiddenError(RecipeHubError):
    def __init__(self, message: str = "Operation not allowed"):
        super().__init__(message)


class NotFoundError(RecipeHubError):
    pass


class RecipeNotFoundError(NotFoundError):
    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class CommentNotFoundError(NotFoundError):
    def __init__(self, recipe_id: str, comment_id: str):
        super().__init__(f"Comment {comment_id} not found on recipe {recipe_id}")
        self.recipe_id = recipe_id
        self.comment_id = comment_id


class UnavailableError(RecipeHubError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Backend unavailable during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class StorageError(UnavailableError):
    def __init__(self, object_key: str, reason: str):
        super().__init__("storage", f"{object_key}: {reason}")
        self.object_key = object_key


class WriteConflictError(UnavailableError):
    def __init__(self, recipe_id: str, attempts: int):
        super().__init__("write", f"recipe {recipe_id} kept changing after {attempts} attempts")
        self.recipe_id = recipe_id
        self.attempts = attempts


class UploadCancelledError(RecipeHubError):
    def __init__(self, object_key: str):
        super().__init__(f"Upload cancelled: {object_key}")
        self.object_key = object_key


class AuthenticationError(RecipeHubError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AuthenticationRequiredError(AuthenticationError):
    def __init__(self, message: str = "Sign in required"):
        super().__init__(message)
