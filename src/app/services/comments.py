from __future__ import annotations

import logging
from datetime import datetime, timezone

from src.app.domain.errors import CommentNotFoundError, ForbiddenError, InvalidArgumentError, RecipeNotFoundError
from src.app.domain.models import Comment, CommentPage, Recipe, UserIdentity
from src.app.infra.db.base import RecipeRepository
from src.app.services.mutations import DEFAULT_MAX_WRITE_ATTEMPTS, apply_to_recipe

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 2000
COMMENTS_PER_PAGE = 4


def _comment_id(created_at: datetime, existing: list[Comment]) -> str:
    candidate = int(created_at.timestamp() * 1000)
    taken = {comment.id for comment in existing}
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def paginate_comments(comments: list[Comment], page: int = 1, per_page: int = COMMENTS_PER_PAGE) -> CommentPage:
    """Slice an already loaded comment list for display, oldest first."""
    per_page = max(1, per_page)
    total = len(comments)
    last_page = max(1, -(-total // per_page))
    page = min(max(1, page), last_page)
    start = (page - 1) * per_page
    return CommentPage(items=comments[start:start + per_page], page=page, per_page=per_page, total=total)


class CommentService:
    def __init__(
        self,
        recipes: RecipeRepository,
        max_write_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS,
    ):
        self._recipes = recipes
        self.max_write_attempts = max_write_attempts

    def add(self, recipe_id: str, author: UserIdentity, text: str) -> Comment:
        """
        Append a comment to the recipe.

        Raises:
            InvalidArgumentError: If the text is blank or too long
            RecipeNotFoundError: If the recipe does not exist
        """
        body = (text or "").strip()
        if not body:
            raise InvalidArgumentError("text", "comment cannot be empty")
        if len(body) > MAX_COMMENT_LENGTH:
            raise InvalidArgumentError("text", f"comment cannot exceed {MAX_COMMENT_LENGTH} characters")

        def change(recipe: Recipe) -> Comment:
            created_at = datetime.now(timezone.utc)
            comment = Comment(
                id=_comment_id(created_at, recipe.comments),
                user_id=author.uid,
                user_name=author.display_name or "Anonymous",
                user_photo_url=author.photo_url,
                text=body,
                created_at=created_at,
            )
            recipe.comments.append(comment)
            return comment

        _, comment = apply_to_recipe(self._recipes, recipe_id, change, self.max_write_attempts)
        logger.info("Comment added: recipe=%s, comment=%s, user=%s", recipe_id, comment.id, author.uid)
        return comment

    def remove(self, recipe_id: str, comment_id: str, requester_id: str) -> None:
        """
        Delete a comment. Allowed for the comment's author and the recipe owner.

        Raises:
            CommentNotFoundError: If the comment is not on the recipe
            ForbiddenError: If the requester may not delete it
        """
        def change(recipe: Recipe) -> None:
            comment = recipe.find_comment(comment_id)
            if comment is None:
                raise CommentNotFoundError(recipe_id, comment_id)
            if requester_id not in (comment.user_id, recipe.user_id):
                raise ForbiddenError("Only the comment author or the recipe owner can delete this comment")
            recipe.comments = [c for c in recipe.comments if c.id != comment_id]

        apply_to_recipe(self._recipes, recipe_id, change, self.max_write_attempts)
        logger.info("Comment removed: recipe=%s, comment=%s, by=%s", recipe_id, comment_id, requester_id)

    def page(self, recipe_id: str, page: int = 1, per_page: int = COMMENTS_PER_PAGE) -> CommentPage:
        """
        One page of a recipe's comments. Reading comments does not count a view.

        Raises:
            RecipeNotFoundError: If the recipe does not exist
        """
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return paginate_comments(recipe.comments, page, per_page)
