# src/app/infra/storage/base.py
"""
Abstract base class for storage providers.
This interface allows easy swapping between different storage backends (R2, S3, local disk).
"""
from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from typing import Iterator
from uuid import uuid4

from src.app.domain.models import UploadProgress


class StorageProvider(ABC):
    """
    Abstract interface for object storage operations.

    Implementations:
    - R2StorageProvider: Cloudflare R2 (S3-compatible)
    - LocalStorageProvider: files under a local media directory
    """

    @abstractmethod
    def upload(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> Iterator[UploadProgress]:
        """
        Upload an object, reporting progress as it goes.

        The iterator yields one event per transferred chunk and ends with an
        event whose `url` is the stable public URL of the object. Closing
        the iterator before that final event aborts the transfer and leaves
        no object behind.

        Args:
            object_key: The key/path where the object will be stored
            data: The object content
            content_type: MIME type of the content (e.g., "image/jpeg")

        Yields:
            UploadProgress events
        """
        pass

    @abstractmethod
    def delete_object(self, object_key: str) -> bool:
        """
        Delete an object from storage.

        Returns:
            True if deletion was successful
        """
        pass

    @abstractmethod
    def public_url(self, object_key: str) -> str:
        pass

    @abstractmethod
    def key_from_url(self, url: str) -> str | None:
        """
        Recover the object key from a URL produced by `public_url`.

        Returns:
            The key, or None if the URL does not belong to this storage
        """
        pass

    def build_image_path(self, owner_id: str, filename: str) -> str:
        """
        Generate a unique object key for a recipe image.

        Format: recipes/{owner_id}/{epoch_ms}_{uuid8}_{filename}
        """
        safe_filename = re.sub(r"[^a-zA-Z0-9._-]", "_", filename.rsplit("/", 1)[-1]) or "image"
        if len(safe_filename) > 100:
            safe_filename = safe_filename[-100:]
        timestamp_ms = int(time.time() * 1000)
        return f"recipes/{owner_id}/{timestamp_ms}_{uuid4().hex[:8]}_{safe_filename}"
