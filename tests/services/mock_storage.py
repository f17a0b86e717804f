"""Mock storage client for testing transfer flows."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any

from filerelay.common.errors import NotFound, WriteError
from filerelay.infra.storage.client import (
    ObjectLocation,
    ObjectStream,
    PutObjectOptions,
)


class TrackingBody(io.BytesIO):
    """BytesIO that remembers it was closed, so tests can assert release."""

    def __init__(self, data: bytes, registry: list["TrackingBody"]) -> None:
        super().__init__(data)
        self.was_closed = False
        registry.append(self)

    def close(self) -> None:
        self.was_closed = True
        super().close()


@dataclass
class MockStorageClient:
    """In-memory mock of StorageClient for testing."""

    buckets: set[str] = field(default_factory=set)
    objects: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    opened_bodies: list[TrackingBody] = field(default_factory=list)
    put_error: Exception | None = None
    declared_size_override: int | None = None

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        options: PutObjectOptions,
    ) -> str | None:
        self.calls.append("put_object")
        if self.put_error is not None:
            error = self.put_error
            raise WriteError(f"Failed to put object: {error}") from error
        self.objects[f"{bucket}/{object_key}"] = {
            "bucket": bucket,
            "object_key": object_key,
            "body": bytes(body),
            "options": options,
        }
        return f'"mock-etag-{len(body)}"'

    def get_object(self, *, bucket: str, object_key: str) -> ObjectStream:
        self.calls.append("get_object")
        key = f"{bucket}/{object_key}"
        if key not in self.objects:
            raise NotFound(f"Object not found: {object_key}", key=object_key)
        obj = self.objects[key]
        size = len(obj["body"])
        if self.declared_size_override is not None:
            size = self.declared_size_override
        return ObjectStream(
            location=ObjectLocation(bucket=bucket, key=object_key),
            body=TrackingBody(obj["body"], self.opened_bodies),
            size_bytes=size,
            content_type=obj["options"].content_type,
        )

    def bucket_exists(self, *, bucket: str) -> bool:
        self.calls.append("bucket_exists")
        return bucket in self.buckets

    def create_bucket(self, *, bucket: str, region: str | None = None) -> None:
        self.calls.append(f"create_bucket:{region}")
        self.buckets.add(bucket)

    def stored(self, bucket: str, object_key: str) -> dict[str, Any]:
        """Test helper returning the stored record."""
        return self.objects[f"{bucket}/{object_key}"]

    def seed(self, bucket: str, object_key: str, body: bytes) -> None:
        """Test helper placing an object directly in the store."""
        self.objects[f"{bucket}/{object_key}"] = {
            "bucket": bucket,
            "object_key": object_key,
            "body": body,
            "options": PutObjectOptions(
                content_type="application/octet-stream",
                content_length=len(body),
            ),
        }
