"""Storage client protocol and data types.

This module defines the abstract interface for the object storage operations
the transfer pipeline relies on: single-shot puts, streamed gets and bucket
provisioning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class ObjectLocation:
    """Where an object lives in the backend."""

    bucket: str
    key: str
    public_url: str | None = None


@dataclass(frozen=True, slots=True)
class PutObjectOptions:
    """Headers applied to a single-shot put."""

    content_type: str
    content_length: int
    content_disposition: str | None = "attachment"
    acl: str | None = None
    server_side_encryption: str | None = None


@dataclass(slots=True)
class ObjectStream:
    """Readable body of a stored object.

    ``size_bytes`` is the size declared by the backend (``None`` if unknown).
    The body must be closed by whoever opened the stream.
    """

    location: ObjectLocation
    body: Any
    size_bytes: int | None
    content_type: str | None = None

    def read(self, amt: int | None = None) -> bytes:
        return self.body.read(amt)

    def close(self) -> None:
        close = getattr(self.body, "close", None)
        if close is not None:
            close()


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations must provide all methods defined here.
    Currently supports AWS S3 and S3-compatible services such as MinIO.
    """

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        options: PutObjectOptions,
    ) -> str | None:
        """Store ``body`` under ``object_key`` in one request.

        Returns:
            The ETag reported by the backend, if any.

        Raises:
            WriteError: If the backend rejects the put.
        """
        ...

    def get_object(self, *, bucket: str, object_key: str) -> ObjectStream:
        """Open an object for reading.

        Raises:
            NotFound: If the key does not exist.
            BackendError: For transport or authorization failures.
        """
        ...

    def bucket_exists(self, *, bucket: str) -> bool:
        """Return True when the bucket exists and is accessible.

        Raises:
            BackendError: For failures other than a missing bucket.
        """
        ...

    def create_bucket(self, *, bucket: str, region: str | None = None) -> None:
        """Create a bucket, optionally pinned to ``region``.

        Raises:
            BackendError: If the bucket cannot be created.
        """
        ...
