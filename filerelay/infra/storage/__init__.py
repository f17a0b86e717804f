"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .client import (
    ObjectLocation,
    ObjectStream,
    PutObjectOptions,
    StorageClient,
)

if TYPE_CHECKING:
    from filerelay.common.config import Settings


def build_storage_client(settings: "Settings") -> StorageClient:
    """Build the storage backend handle for the configured flavor."""
    from .s3_client import S3StorageClient

    return S3StorageClient(settings=settings)


__all__ = [
    "ObjectLocation",
    "ObjectStream",
    "PutObjectOptions",
    "StorageClient",
    "build_storage_client",
]
