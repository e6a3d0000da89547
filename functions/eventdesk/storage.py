"""
Object storage abstraction for S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import quote, unquote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from eventdesk.errors import NotFoundError, TransientError
from shared.types import PhotoCategory

logger = logging.getLogger(__name__)


def report_photo_path(
    uploader_id: str, report_id: str, category: PhotoCategory, filename: str
) -> str:
    """
    Build `{uploaderId}/{reportId}/{category}/{timestampMs}-{random}.{ext}`.

    The extension is whatever follows the last dot of the original filename
    (the whole name when there is no dot).
    """
    ext = filename.rsplit(".", 1)[-1]
    stamp = int(time.time() * 1000)
    suffix = uuid.uuid4().hex[:9]
    return f"{uploader_id}/{report_id}/{category.value}/{stamp}-{suffix}.{ext}"


def avatar_path(user_id: str, filename: str) -> str:
    return f"{user_id}/{filename}"


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        ...

    def get_public_url(self, bucket: str, path: str) -> str:
        ...

    def path_from_public_url(self, bucket: str, url: str) -> Optional[str]:
        ...

    def get_bytes(self, bucket: str, path: str) -> bytes:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage/v1/object/public"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def reset(self) -> None:
        self.stored_objects.clear()

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        self.stored_objects[(bucket, path)] = bytes(data)

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/{bucket}/{quote(path)}"

    def path_from_public_url(self, bucket: str, url: str) -> Optional[str]:
        prefix = f"{self.base_url}/{bucket}/"
        if not url.startswith(prefix):
            return None
        return unquote(url[len(prefix):])

    def get_bytes(self, bucket: str, path: str) -> bytes:
        stored = self.stored_objects.get((bucket, path))
        if stored is None:
            raise NotFoundError(f"File not found: {path}")
        return stored


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client (Supabase Storage, MinIO, AWS S3).

    Public URLs are built from `public_base_url`, which must point at the
    public object prefix, e.g. `https://<project>.supabase.co/storage/v1/object/public`.
    """

    endpoint: str
    region: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str

    def __post_init__(self):
        # S3-compatible gateways generally only support path-style addressing.
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )
        self.public_base_url = self.public_base_url.rstrip("/")

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        try:
            self._client.put_object(
                Bucket=bucket,
                Key=path,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Upload to %s/%s failed", bucket, path)
            raise TransientError("Could not upload the file") from exc

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{bucket}/{quote(path)}"

    def path_from_public_url(self, bucket: str, url: str) -> Optional[str]:
        prefix = f"{self.public_base_url}/{bucket}/"
        if not url.startswith(prefix):
            return None
        return unquote(url[len(prefix):])

    def get_bytes(self, bucket: str, path: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=bucket, Key=path)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError(f"File not found: {path}") from exc
            logger.exception("Download of %s/%s failed", bucket, path)
            raise TransientError("Could not download the file") from exc
        except BotoCoreError as exc:
            logger.exception("Download of %s/%s failed", bucket, path)
            raise TransientError("Could not download the file") from exc
        return response["Body"].read()
