"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from filerelay.common.errors import BackendError, NotFound, WriteError
from filerelay.infra.storage.client import (
    ObjectLocation,
    ObjectStream,
    PutObjectOptions,
)

if TYPE_CHECKING:
    from filerelay.common.config import Settings

logger = logging.getLogger("filerelay.storage")

_MISSING_OBJECT_CODES = {"NoSuchKey", "NotFound", "404"}
_MISSING_BUCKET_CODES = {"NoSuchBucket", "NotFound", "404"}


def _error_code(exc: ClientError) -> str:
    error = exc.response.get("Error", {}) if exc.response else {}
    return str(error.get("Code", ""))


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations. The underlying boto3 client is
    built once and never reconfigured, so one instance can be shared by
    concurrent invocations.
    """

    def __init__(self, *, settings: "Settings", client: Any | None = None) -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Application settings containing S3 configuration.
            client: Pre-built boto3 client, mainly for tests.
        """
        self._settings = settings
        self._client = client if client is not None else self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": settings.addressing_style},
        )
        return boto3.client(
            "s3",
            endpoint_url=settings.endpoint_url,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        options: PutObjectOptions,
    ) -> str | None:
        """Store an object with a single PutObject request."""
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": object_key,
            "Body": body,
            "ContentLength": int(options.content_length),
            "ContentType": options.content_type,
        }
        if options.content_disposition:
            params["ContentDisposition"] = options.content_disposition
        if options.acl:
            params["ACL"] = options.acl
        if options.server_side_encryption:
            params["ServerSideEncryption"] = options.server_side_encryption

        try:
            response = self._client.put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            raise WriteError(
                f"Failed to put object: {exc}",
                bucket=bucket,
                key=object_key,
            ) from exc

        return response.get("ETag")

    def get_object(self, *, bucket: str, object_key: str) -> ObjectStream:
        """Open an object body for streaming reads."""
        try:
            response = self._client.get_object(Bucket=bucket, Key=object_key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                raise NotFound(
                    f"Object not found: {object_key}",
                    bucket=bucket,
                    key=object_key,
                ) from exc
            raise BackendError(
                f"Failed to get object: {exc}", bucket=bucket, key=object_key
            ) from exc
        except BotoCoreError as exc:
            raise BackendError(
                f"Failed to get object: {exc}", bucket=bucket, key=object_key
            ) from exc

        size = response.get("ContentLength")
        return ObjectStream(
            location=ObjectLocation(bucket=bucket, key=object_key),
            body=response["Body"],
            size_bytes=int(size) if size is not None else None,
            content_type=response.get("ContentType"),
        )

    def bucket_exists(self, *, bucket: str) -> bool:
        """Check bucket existence with HeadBucket."""
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_BUCKET_CODES:
                return False
            raise BackendError(
                f"Failed to check bucket existence: {exc}", bucket=bucket
            ) from exc
        except BotoCoreError as exc:
            raise BackendError(
                f"Failed to check bucket existence: {exc}", bucket=bucket
            ) from exc
        return True

    def create_bucket(self, *, bucket: str, region: str | None = None) -> None:
        """Create a bucket in ``region``.

        us-east-1 is the implicit default location and must not be sent as a
        LocationConstraint.
        """
        params: dict[str, Any] = {"Bucket": bucket}
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self._client.create_bucket(**params)
        except ClientError as exc:
            if _error_code(exc) == "BucketAlreadyOwnedByYou":
                logger.info(
                    "bucket_already_owned bucket=%s",
                    bucket,
                    extra={"extra": {"bucket": bucket}},
                )
                return
            raise BackendError(
                f"Failed to create bucket: {exc}", bucket=bucket
            ) from exc
        except BotoCoreError as exc:
            raise BackendError(
                f"Failed to create bucket: {exc}", bucket=bucket
            ) from exc
