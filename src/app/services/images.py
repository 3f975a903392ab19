# src/app/services/images.py
"""
Uploading recipe images.

Images upload independently of the recipe's text fields. A failed upload
never blocks the recipe: the recipe is kept without the new images and the
caller gets a warning instead.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional
from uuid import uuid4

from src.app.domain.errors import (
    RecipeHubError,
    RecipeNotFoundError,
    StorageError,
    UploadCancelledError,
    ValidationError,
)
from src.app.domain.models import Recipe
from src.app.infra.db.base import RecipeRepository
from src.app.infra.storage.base import StorageProvider
from src.app.services.mutations import DEFAULT_MAX_WRITE_ATTEMPTS, apply_to_recipe, require_owner

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024

ProgressCallback = Callable[[str, float], None]


@dataclass
class PendingImage:
    """An image picked for upload; `cancel()` removes it, even mid-transfer."""
    filename: str
    content_type: str
    data: bytes
    id: str = field(default_factory=lambda: uuid4().hex)
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


@dataclass
class UploadOutcome:
    urls: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class ImageUploader:
    def __init__(
        self,
        storage: StorageProvider,
        recipes: RecipeRepository,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        max_write_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS,
    ):
        self._storage = storage
        self._recipes = recipes
        self.max_image_bytes = max_image_bytes
        self.max_write_attempts = max_write_attempts

    def validate(self, images: list[PendingImage]) -> None:
        errors: dict[str, str] = {}
        for image in images:
            if image.content_type not in ALLOWED_IMAGE_TYPES:
                errors[image.filename] = f"Content type '{image.content_type}' not allowed"
            elif not image.data:
                errors[image.filename] = "File is empty"
            elif len(image.data) > self.max_image_bytes:
                errors[image.filename] = f"File too large. Maximum size: {self.max_image_bytes // (1024 * 1024)}MB"
        if errors:
            raise ValidationError(errors)

    def upload_all(
        self,
        owner_id: str,
        images: list[PendingImage],
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadOutcome:
        """
        Upload every image that was not cancelled.

        If any upload fails, the ones that already finished are removed again
        and the outcome carries no URLs, only a warning.
        """
        self.validate(images)
        outcome = UploadOutcome()
        uploaded_keys: list[str] = []

        for image in images:
            if image.cancelled:
                continue
            object_key = self._storage.build_image_path(owner_id, image.filename)
            try:
                url = self._upload_one(object_key, image, on_progress)
            except UploadCancelledError:
                logger.info("Image removed before upload finished: %s", image.filename)
                continue
            except StorageError as error:
                logger.error("Image upload failed, saving recipe without new images: %s", error)
                for key in uploaded_keys:
                    self._storage.delete_object(key)
                return UploadOutcome(
                    urls=[],
                    warnings=[f"Failed to upload {image.filename}. The recipe was saved without new images."],
                )
            uploaded_keys.append(object_key)
            outcome.urls.append(url)

        return outcome

    def _upload_one(
        self,
        object_key: str,
        image: PendingImage,
        on_progress: Optional[ProgressCallback],
    ) -> str:
        transfer = self._storage.upload(object_key, image.data, image.content_type)
        try:
            for progress in transfer:
                if progress.url is not None and image.cancelled:
                    # cancelled after the last byte landed; the object already exists
                    self._discard([progress.url])
                    raise UploadCancelledError(object_key)
                if image.cancelled:
                    raise UploadCancelledError(object_key)
                if on_progress is not None:
                    on_progress(image.id, progress.percent)
                if progress.url is not None:
                    return progress.url
        finally:
            # aborts the transfer if it did not run to completion
            transfer.close()
        raise StorageError(object_key, "upload ended without a URL")

    def attach_to_recipe(
        self,
        recipe_id: str,
        owner_id: str,
        images: list[PendingImage],
        on_progress: Optional[ProgressCallback] = None,
    ) -> tuple[Recipe, UploadOutcome]:
        """
        Upload images and append their URLs to an existing recipe.

        Raises:
            RecipeNotFoundError: If the recipe does not exist
            ForbiddenError: If `owner_id` does not own the recipe
        """
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        require_owner(recipe, owner_id)

        outcome = self.upload_all(owner_id, images, on_progress)
        if not outcome.urls:
            return recipe, outcome

        def change(current: Recipe) -> None:
            require_owner(current, owner_id)
            current.images.extend(outcome.urls)

        try:
            recipe, _ = apply_to_recipe(self._recipes, recipe_id, change, self.max_write_attempts)
        except RecipeHubError:
            self._discard(outcome.urls)
            raise
        logger.info("Images attached: recipe=%s, count=%d", recipe_id, len(outcome.urls))
        return recipe, outcome

    def _discard(self, urls: list[str]) -> None:
        for url in urls:
            key = self._storage.key_from_url(url)
            if key is not None and not self._storage.delete_object(key):
                logger.warning("Orphaned image left in storage: key=%s", key)
