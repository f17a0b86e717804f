"""Object writer and reader: the two seams between staging and the backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from filerelay.common.config import Settings
from filerelay.infra.storage.client import (
    ObjectLocation,
    PutObjectOptions,
    StorageClient,
)
from filerelay.pipeline.staging import DEFAULT_CHUNK_SIZE, StagedPayload, stage_stream

logger = logging.getLogger("filerelay.storage")


@dataclass(frozen=True, slots=True)
class WritePolicy:
    """Fixed headers applied to every put of a flow."""

    acl: str | None = "private"
    server_side_encryption: str | None = None
    content_disposition: str = "attachment"

    @classmethod
    def for_ingest(cls, settings: Settings) -> "WritePolicy":
        return cls(
            acl=settings.S3_OBJECT_ACL,
            server_side_encryption=settings.server_side_encryption,
        )

    @classmethod
    def for_gateway(cls, settings: Settings) -> "WritePolicy":
        return cls(
            acl=settings.S3_GATEWAY_OBJECT_ACL,
            server_side_encryption=settings.server_side_encryption,
        )


class ObjectWriter:
    """Stores a staged payload with one put; no retries."""

    def __init__(
        self, storage: StorageClient, *, bucket: str, policy: WritePolicy
    ) -> None:
        self._storage = storage
        self._bucket = bucket
        self._policy = policy

    @property
    def policy(self) -> WritePolicy:
        return self._policy

    def write(self, payload: StagedPayload, key: str) -> ObjectLocation:
        """Put ``payload`` under ``key``; an existing object is overwritten.

        Raises:
            WriteError: If the backend rejects the put.
        """
        options = PutObjectOptions(
            content_type=payload.detected_content_type,
            content_length=payload.size_bytes,
            content_disposition=self._policy.content_disposition,
            acl=self._policy.acl,
            server_side_encryption=self._policy.server_side_encryption,
        )
        self._storage.put_object(
            bucket=self._bucket,
            object_key=key,
            body=payload.data,
            options=options,
        )
        logger.info(
            "object_written bucket=%s key=%s size=%s content_type=%s",
            self._bucket,
            key,
            payload.size_bytes,
            payload.detected_content_type,
            extra={
                "extra": {
                    "event": "object_written",
                    "bucket": self._bucket,
                    "key": key,
                    "size_bytes": payload.size_bytes,
                    "content_type": payload.detected_content_type,
                }
            },
        )
        return ObjectLocation(bucket=self._bucket, key=key)


class ObjectReader:
    """Reads an object fully into memory."""

    def __init__(
        self,
        storage: StorageClient,
        *,
        bucket: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_bytes: int | None = None,
    ) -> None:
        self._storage = storage
        self._bucket = bucket
        self._chunk_size = chunk_size
        self._max_bytes = max_bytes

    def read(self, key: str) -> StagedPayload:
        """Stage the object stored under ``key``.

        The backend stream is closed on every exit path.

        Raises:
            NotFound: If the key does not exist.
            BackendError: For transport or authorization failures.
            StagingError: If the body cannot be read.
        """
        stream = self._storage.get_object(bucket=self._bucket, object_key=key)
        try:
            payload = stage_stream(
                stream,
                declared_length=stream.size_bytes,
                chunk_size=self._chunk_size,
                max_bytes=self._max_bytes,
            )
        finally:
            stream.close()

        logger.info(
            "object_read bucket=%s key=%s size=%s",
            self._bucket,
            key,
            payload.size_bytes,
            extra={
                "extra": {
                    "event": "object_read",
                    "bucket": self._bucket,
                    "key": key,
                    "size_bytes": payload.size_bytes,
                }
            },
        )
        return payload
