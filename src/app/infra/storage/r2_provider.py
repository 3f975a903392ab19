# src/app/infra/storage/r2_provider.py
"""
Cloudflare R2 storage provider implementation.
R2 is S3-compatible, so we use boto3 with custom endpoint.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Iterator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.app.domain.errors import StorageError
from src.app.domain.models import UploadProgress
from src.app.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)

# S3 rejects multipart parts smaller than 5 MiB (except the last one)
DEFAULT_PART_SIZE = 5 * 1024 * 1024


class R2StorageProvider(StorageProvider):
    """
    Cloudflare R2 storage provider using boto3 (S3-compatible).

    Environment variables required:
    - R2_ACCOUNT_ID: Cloudflare account ID
    - R2_ACCESS_KEY_ID: R2 access key ID
    - R2_SECRET_ACCESS_KEY: R2 secret access key
    - R2_BUCKET_NAME: Name of the R2 bucket
    - R2_PUBLIC_URL: (Optional) Public URL for the bucket
    """

    def __init__(
        self,
        account_id: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        bucket_name: Optional[str] = None,
        public_url: Optional[str] = None,
        part_size: int = DEFAULT_PART_SIZE,
        client: Any = None,
    ):
        self.account_id = account_id or os.getenv("R2_ACCOUNT_ID")
        self.access_key_id = access_key_id or os.getenv("R2_ACCESS_KEY_ID")
        self.secret_access_key = secret_access_key or os.getenv("R2_SECRET_ACCESS_KEY")
        self.bucket_name = bucket_name or os.getenv("R2_BUCKET_NAME")
        self.public_base_url = (public_url or os.getenv("R2_PUBLIC_URL") or "").rstrip("/")
        self.part_size = part_size

        if not all([self.account_id, self.access_key_id, self.secret_access_key, self.bucket_name]):
            raise StorageError(
                "config",
                "Missing R2 configuration. Required: R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, "
                "R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME",
            )

        self.endpoint_url = f"https://{self.account_id}.r2.cloudflarestorage.com"

        self._client = client or boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            ),
            region_name="auto",  # R2 uses 'auto' as region
        )

        logger.info(
            "R2StorageProvider initialized: bucket=%s, endpoint=%s",
            self.bucket_name,
            self.endpoint_url,
        )

    def public_url(self, object_key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{object_key}"
        return f"{self.endpoint_url}/{self.bucket_name}/{object_key}"

    def key_from_url(self, url: str) -> str | None:
        prefix = self.public_url("")
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    def upload(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> Iterator[UploadProgress]:
        """Upload to R2, as a multipart upload when larger than one part."""
        total = len(data)
        yield UploadProgress(bytes_transferred=0, total_bytes=total)

        if total <= self.part_size:
            try:
                self._client.put_object(
                    Bucket=self.bucket_name,
                    Key=object_key,
                    Body=data,
                    ContentType=content_type,
                )
            except (ClientError, BotoCoreError) as e:
                logger.error("Failed to upload to R2: %s", e)
                raise StorageError(object_key, f"Failed to upload file: {e}") from e
        else:
            yield from self._upload_multipart(object_key, data, content_type)

        logger.info("Uploaded to R2: key=%s, size=%d bytes", object_key, total)
        yield UploadProgress(bytes_transferred=total, total_bytes=total, url=self.public_url(object_key))

    def _upload_multipart(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> Iterator[UploadProgress]:
        total = len(data)
        try:
            response = self._client.create_multipart_upload(
                Bucket=self.bucket_name,
                Key=object_key,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to start multipart upload: %s", e)
            raise StorageError(object_key, f"Failed to start upload: {e}") from e

        upload_id = response["UploadId"]
        parts: list[dict[str, Any]] = []
        sent = 0
        completed = False
        try:
            for number, offset in enumerate(range(0, total, self.part_size), start=1):
                chunk = data[offset:offset + self.part_size]
                part = self._client.upload_part(
                    Bucket=self.bucket_name,
                    Key=object_key,
                    PartNumber=number,
                    UploadId=upload_id,
                    Body=chunk,
                )
                parts.append({"ETag": part["ETag"], "PartNumber": number})
                sent += len(chunk)
                logger.debug("Uploaded part %d of %s (%d/%d bytes)", number, object_key, sent, total)
                yield UploadProgress(bytes_transferred=sent, total_bytes=total)

            self._client.complete_multipart_upload(
                Bucket=self.bucket_name,
                Key=object_key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
            completed = True
        except (ClientError, BotoCoreError) as e:
            logger.error("Multipart upload failed for %s: %s", object_key, e)
            raise StorageError(object_key, f"Failed to upload file: {e}") from e
        finally:
            if not completed:
                self._abort_multipart(object_key, upload_id)

    def _abort_multipart(self, object_key: str, upload_id: str) -> None:
        try:
            self._client.abort_multipart_upload(
                Bucket=self.bucket_name,
                Key=object_key,
                UploadId=upload_id,
            )
            logger.info("Aborted multipart upload: key=%s", object_key)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Failed to abort multipart upload for %s: %s", object_key, e)

    def delete_object(self, object_key: str) -> bool:
        """Delete an object from R2."""
        try:
            self._client.delete_object(
                Bucket=self.bucket_name,
                Key=object_key,
            )
            logger.info("Deleted object from R2: key=%s", object_key)
            return True

        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to delete object from R2: %s", e)
            return False
