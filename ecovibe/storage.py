"""
Storage abstraction for S3-compatible object storage and in-memory testing.
"""

from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ecovibe.errors import StorageError

PROJECT_IMAGE_FOLDER = "projects"
_EXTENSION = re.compile(r"[a-z0-9]{1,10}")


def new_image_path(filename: str) -> str:
    """Return a fresh flat-folder object path keeping the upload's extension."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if not _EXTENSION.fullmatch(ext):
        ext = "bin"
    stamp = int(time.time() * 1000)
    return f"{PROJECT_IMAGE_FOLDER}/{stamp}-{secrets.token_hex(6)}.{ext}"


def path_from_public_url(url: str) -> str:
    """Map a public image URL back to its object path inside the image folder."""
    file_name = url.split("?", 1)[0].rstrip("/").split("/")[-1]
    return f"{PROJECT_IMAGE_FOLDER}/{file_name}"


class StorageClient(Protocol):
    """Defines the operations the site needs from object storage."""

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        ...

    def public_url(self, path: str) -> str:
        ...

    def remove(self, paths: list[str]) -> None:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage/project-images"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        self.stored_objects[path] = data

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.stored_objects.pop(path, None)


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client for the public project image bucket.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: Optional[str] = None

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Upload failed for {path}: {exc}") from exc

    def public_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        endpoint = self.endpoint or f"https://s3.{self.region or 'us-east-1'}.amazonaws.com"
        return f"{endpoint.rstrip('/')}/{self.bucket}/{path}"

    def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        try:
            self._client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": path} for path in paths]},
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Delete failed for {paths}: {exc}") from exc
