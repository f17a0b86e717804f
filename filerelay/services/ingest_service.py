"""Ingest flow: fetch a remote URL and store it in the bucket.

The object key is the last segment of the source URL path, so ingesting the
same URL twice overwrites the same object.
"""

from __future__ import annotations

import logging
from typing import Callable

from filerelay.common.config import Settings
from filerelay.infra.http.fetcher import RemoteFetcher
from filerelay.infra.storage.client import ObjectLocation, StorageClient
from filerelay.pipeline.results import IngestResult, build_public_url
from filerelay.pipeline.staging import StagedPayload, stage_stream
from filerelay.pipeline.validator import derive_object_key, parse_source_url
from filerelay.services.base import BaseService
from filerelay.services.object_io import ObjectWriter, WritePolicy

logger = logging.getLogger("filerelay.transfer")


class IngestService(BaseService):
    """Validate → fetch → stage → write → result."""

    flow = "ingest"

    def __init__(
        self,
        *,
        settings: Settings,
        storage: StorageClient,
        fetcher: RemoteFetcher,
        policy: WritePolicy | None = None,
    ) -> None:
        super().__init__(settings=settings, storage=storage)
        self._fetcher = fetcher
        self._writer = ObjectWriter(
            storage,
            bucket=self.bucket,
            policy=policy or WritePolicy.for_ingest(settings),
        )

    @property
    def writer(self) -> ObjectWriter:
        return self._writer

    def fetch(self, url: str) -> StagedPayload:
        """Download ``url`` into memory; the connection is always released."""
        with self._fetcher.open(url) as remote:
            payload = stage_stream(
                remote,
                declared_length=remote.declared_length,
                chunk_size=self.settings.STAGING_CHUNK_SIZE,
                max_bytes=self.settings.STAGING_MAX_BYTES,
            )
        logger.info(
            "source_fetched url=%s status=%s size=%s",
            url,
            remote.status_code,
            payload.size_bytes,
            extra={
                "extra": {
                    "event": "source_fetched",
                    "url": url,
                    "status": remote.status_code,
                    "size": payload.size_bytes,
                    "declared_content_type": remote.declared_content_type,
                    "detected_content_type": payload.detected_content_type,
                }
            },
        )
        return payload

    def _public_location(self, location: ObjectLocation) -> ObjectLocation:
        settings = self.settings
        # A custom endpoint has no amazonaws.com address to publish.
        if not settings.is_aws or not settings.S3_REGION or settings.S3_ENDPOINT_URL:
            return location
        return ObjectLocation(
            bucket=location.bucket,
            key=location.key,
            public_url=build_public_url(
                location.bucket, settings.S3_REGION, location.key
            ),
        )

    def ingest(
        self,
        raw_url: str | None,
        *,
        before_write: Callable[[], None] | None = None,
    ) -> IngestResult:
        """Copy the resource at ``raw_url`` into the bucket.

        ``before_write`` runs once the body is staged, right before the put.

        Raises:
            InvalidRequest: Before any network call, if the URL is unusable.
            FetchError: If the source cannot be retrieved.
            StagingError: If the body cannot be buffered.
            WriteError: If the backend rejects the object.

        Errors raised by ``before_write`` propagate and nothing is written.
        """
        with self._track(raw_url):
            source = parse_source_url(raw_url)
            key = derive_object_key(source)

            payload = self.fetch(source.raw)
            self._observe_size(payload.size_bytes)
            if before_write is not None:
                before_write()
            location = self._writer.write(payload, key)

            result = IngestResult(
                input_url=source.raw,
                location=self._public_location(location),
                size_bytes=payload.size_bytes,
                content_type=payload.detected_content_type,
            )

        logger.info(
            "ingest_completed url=%s key=%s size=%s",
            source.raw,
            key,
            payload.size_bytes,
            extra={
                "extra": {
                    "event": "ingest_completed",
                    "url": source.raw,
                    "key": key,
                    "s3_path": result.s3_path,
                }
            },
        )
        return result
