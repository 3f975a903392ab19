from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from src.app.domain.errors import StorageError
from src.app.domain.models import UploadProgress
from src.app.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class LocalStorageProvider(StorageProvider):
    """Stores objects under a local media directory, served from `base_url`."""

    def __init__(
        self,
        media_root: str | Path,
        base_url: str = "/media",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.media_root = Path(media_root)
        self.base_url = base_url.rstrip("/")
        self.chunk_size = chunk_size
        self.media_root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, object_key: str) -> Path:
        if ".." in object_key.split("/") or object_key.startswith("/"):
            raise StorageError(object_key, "Invalid storage key")
        return self.media_root / object_key

    def public_url(self, object_key: str) -> str:
        return f"{self.base_url}/{object_key}"

    def key_from_url(self, url: str) -> str | None:
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    def upload(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> Iterator[UploadProgress]:
        file_path = self._path_for(object_key)
        total = len(data)
        written = 0
        completed = False

        yield UploadProgress(bytes_transferred=0, total_bytes=total)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                for offset in range(0, total, self.chunk_size):
                    chunk = data[offset:offset + self.chunk_size]
                    f.write(chunk)
                    written += len(chunk)
                    yield UploadProgress(bytes_transferred=written, total_bytes=total)
            completed = True
        except OSError as e:
            logger.error("Failed to write %s: %s", file_path, e)
            raise StorageError(object_key, str(e)) from e
        finally:
            if not completed:
                file_path.unlink(missing_ok=True)

        logger.info("Saved %d bytes to %s", total, file_path)
        yield UploadProgress(bytes_transferred=total, total_bytes=total, url=self.public_url(object_key))

    def delete_object(self, object_key: str) -> bool:
        try:
            file_path = self._path_for(object_key)
        except StorageError:
            logger.warning("Invalid delete key: %s", object_key)
            return False
        try:
            file_path.unlink(missing_ok=True)
            logger.info("Deleted file %s", file_path)
            return True
        except OSError as e:
            logger.error("Failed to delete %s: %s", file_path, e)
            return False
