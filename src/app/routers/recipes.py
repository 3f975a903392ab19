# src/app/routers/recipes.py
"""
Recipe routes: browsing, authoring, interactions, comments and images.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from src.app.config import settings
from src.app.deps import (
    get_comment_service,
    get_current_user,
    get_image_uploader,
    get_interactions,
    get_optional_user,
    get_recipe_store,
)
from src.app.domain.errors import AuthenticationRequiredError
from src.app.domain.models import RecipeFilter, RecipeSort, UserIdentity
from src.app.schemas.recipes import (
    CommentCreate,
    CommentPageResponse,
    CommentResponse,
    RatingRequest,
    RatingResponse,
    RecipeInput,
    RecipePageResponse,
    RecipeResponse,
    RecipeWithWarnings,
    SortParam,
    ToggleResponse,
)
from src.app.services.comments import CommentService
from src.app.services.images import ImageUploader, PendingImage
from src.app.services.interactions import InteractionAggregator
from src.app.services.recipe_store import MAX_PAGE_SIZE, RecipeStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.get("", response_model=RecipePageResponse)
def list_recipes(
    category: Optional[str] = None,
    owner: Optional[str] = None,
    tag: Optional[str] = None,
    featured: bool = False,
    saved: bool = False,
    sort: SortParam = "newest",
    pageSize: int = Query(default=settings.RECIPES_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    cursor: Optional[str] = None,
    user: Optional[UserIdentity] = Depends(get_optional_user),
    store: RecipeStore = Depends(get_recipe_store),
):
    saved_by = None
    if saved:
        if user is None:
            raise AuthenticationRequiredError("Sign in to see saved recipes")
        saved_by = user.uid

    recipe_filter = RecipeFilter(category=category, owner_id=owner, tag=tag, featured=featured, saved_by=saved_by)
    page = store.list(recipe_filter, RecipeSort(sort), pageSize, cursor)
    return RecipePageResponse.from_domain(page)


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    payload: RecipeInput,
    user: UserIdentity = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
):
    recipe = store.create(payload.to_fields(), user)
    return RecipeResponse.from_domain(recipe)


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_recipe_store)):
    return RecipeResponse.from_domain(store.get(recipe_id))


@router.patch("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: str,
    payload: RecipeInput,
    user: UserIdentity = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
):
    recipe = store.update(recipe_id, user.uid, payload.to_fields())
    return RecipeResponse.from_domain(recipe)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: str,
    user: UserIdentity = Depends(get_current_user),
    store: RecipeStore = Depends(get_recipe_store),
):
    store.delete(recipe_id, user.uid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{recipe_id}/similar", response_model=list[RecipeResponse])
def similar_recipes(
    recipe_id: str,
    limit: int = Query(default=3, ge=1, le=12),
    store: RecipeStore = Depends(get_recipe_store),
):
    return [RecipeResponse.from_domain(r) for r in store.similar(recipe_id, limit)]


@router.post("/{recipe_id}/like", response_model=ToggleResponse)
def toggle_like(
    recipe_id: str,
    user: UserIdentity = Depends(get_current_user),
    interactions: InteractionAggregator = Depends(get_interactions),
):
    return ToggleResponse.from_domain(interactions.toggle_like(recipe_id, user.uid))


@router.post("/{recipe_id}/save", response_model=ToggleResponse)
def toggle_save(
    recipe_id: str,
    user: UserIdentity = Depends(get_current_user),
    interactions: InteractionAggregator = Depends(get_interactions),
):
    return ToggleResponse.from_domain(interactions.toggle_save(recipe_id, user.uid))


@router.put("/{recipe_id}/rating", response_model=RatingResponse)
def rate_recipe(
    recipe_id: str,
    payload: RatingRequest,
    user: UserIdentity = Depends(get_current_user),
    interactions: InteractionAggregator = Depends(get_interactions),
):
    return RatingResponse.from_domain(interactions.rate(recipe_id, user.uid, payload.value))


@router.get("/{recipe_id}/comments", response_model=CommentPageResponse)
def list_comments(
    recipe_id: str,
    page: int = Query(default=1, ge=1),
    comments: CommentService = Depends(get_comment_service),
):
    return CommentPageResponse.from_domain(comments.page(recipe_id, page, settings.COMMENTS_PAGE_SIZE))


@router.post("/{recipe_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    recipe_id: str,
    payload: CommentCreate,
    user: UserIdentity = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
):
    return CommentResponse.from_domain(comments.add(recipe_id, user, payload.text))


@router.delete("/{recipe_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    recipe_id: str,
    comment_id: str,
    user: UserIdentity = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
):
    comments.remove(recipe_id, comment_id, user.uid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{recipe_id}/images", response_model=RecipeWithWarnings)
def upload_images(
    recipe_id: str,
    files: list[UploadFile] = File(...),
    user: UserIdentity = Depends(get_current_user),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    """
    Upload one or more images and append them to the recipe.

    If any upload fails the recipe keeps its current images and the
    response carries a warning instead of an error.
    """
    images = [
        PendingImage(
            filename=upload.filename or "image",
            content_type=upload.content_type or "application/octet-stream",
            data=upload.file.read(),
        )
        for upload in files
    ]

    def on_progress(image_id: str, percent: float) -> None:
        logger.debug("Upload progress: recipe=%s, image=%s, %.0f%%", recipe_id, image_id, percent)

    recipe, outcome = uploader.attach_to_recipe(recipe_id, user.uid, images, on_progress)
    response = RecipeResponse.from_domain(recipe).model_dump()
    return RecipeWithWarnings(**response, warnings=outcome.warnings)
