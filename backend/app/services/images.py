"""Object-store access for per-entity images."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

import boto3
from botocore.exceptions import ClientError

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class ImageStoreError(RuntimeError):
    """Raised when the object store rejects an operation."""


class ImageStore(Protocol):
    """Protocol for pluggable object stores holding entity images."""

    def list_keys(self, prefix: str) -> list[str]:
        """Return every key under a prefix."""

    def key_exists(self, key: str) -> bool:
        """Return whether an object exists at the key."""

    def copy(self, source_key: str, dest_key: str) -> None:
        """Copy one object to another key inside the same bucket."""

    def delete(self, key: str) -> None:
        """Delete one object; deleting a missing key is a no-op."""


def category_prefix(category: str, settings: Settings | None = None) -> str:
    """Key prefix listing every image of one category, e.g. ``images/films/``."""

    resolved = settings or get_settings()
    return f"{resolved.images_prefix}/{category}/"


def image_key(category: str, entity_id: int, settings: Settings | None = None) -> str:
    """Object key of an entity image, e.g. ``images/films/12.jpeg``."""

    resolved = settings or get_settings()
    return f"{category_prefix(category, resolved)}{entity_id}.{resolved.image_extension}"


def parse_entity_id(key: str, prefix: str) -> int | None:
    """Parse the numeric id out of ``<prefix><id>.<ext>``; ``None`` when not numeric."""

    if not key.startswith(prefix):
        return None
    stem = key[len(prefix):].split(".", 1)[0]
    try:
        return int(stem)
    except ValueError:
        return None


class S3ImageStore:
    """S3-compatible store (Cloudflare R2 style endpoint) backed by boto3."""

    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "S3ImageStore":
        resolved = settings or get_settings()
        endpoint = resolved.r2_endpoint_url
        if endpoint is None and resolved.r2_account_id:
            endpoint = f"https://{resolved.r2_account_id}.r2.cloudflarestorage.com"
        client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=resolved.r2_access_key_id,
            aws_secret_access_key=resolved.r2_secret_access_key,
            region_name="auto",
        )
        return cls(client, resolved.r2_bucket_name)

    def list_keys(self, prefix: str) -> list[str]:
        keys: list[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                for row in page.get("Contents", []):
                    key = row.get("Key")
                    if key:
                        keys.append(key)
        except Exception as exc:
            raise ImageStoreError(f"Listing {prefix!r} failed: {exc}") from exc
        return keys

    def key_exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in {"404", "NoSuchKey", "NotFound"}:
                return False
            raise ImageStoreError(f"HEAD {key!r} failed: {code}") from exc
        return True

    def copy(self, source_key: str, dest_key: str) -> None:
        try:
            self._client.copy_object(
                Bucket=self._bucket,
                Key=dest_key,
                CopySource={"Bucket": self._bucket, "Key": source_key},
            )
        except Exception as exc:
            raise ImageStoreError(f"Copy {source_key!r} -> {dest_key!r} failed: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except Exception as exc:
            raise ImageStoreError(f"Delete {key!r} failed: {exc}") from exc


@dataclass(slots=True)
class InMemoryImageStore:
    """Deterministic local store used in tests/offline mode."""

    objects: dict[str, bytes] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def put(self, key: str, body: bytes = b"") -> None:
        with self._lock:
            self.objects[key] = body

    def list_keys(self, prefix: str) -> list[str]:
        with self._lock:
            return sorted(key for key in self.objects if key.startswith(prefix))

    def key_exists(self, key: str) -> bool:
        with self._lock:
            return key in self.objects

    def copy(self, source_key: str, dest_key: str) -> None:
        with self._lock:
            if source_key not in self.objects:
                raise ImageStoreError(f"Copy source {source_key!r} does not exist")
            self.objects[dest_key] = self.objects[source_key]

    def delete(self, key: str) -> None:
        with self._lock:
            self.objects.pop(key, None)


_memory_store: InMemoryImageStore | None = None


def get_image_store() -> ImageStore:
    """Return the configured image store."""

    global _memory_store
    settings = get_settings()
    if settings.image_store_backend == "memory":
        if _memory_store is None:
            _memory_store = InMemoryImageStore()
            logger.info("images.store_backend backend=memory")
        return _memory_store
    return S3ImageStore.from_settings(settings)
