"""Single-entry gateway routing a request to the upload or download flow."""

from __future__ import annotations

import logging
from enum import Enum

from filerelay.common.config import Settings
from filerelay.common.errors import UnknownFunction
from filerelay.infra.storage.client import StorageClient
from filerelay.pipeline.results import GatewayResult
from filerelay.services.base import BaseService
from filerelay.services.ingest_service import IngestService
from filerelay.services.retrieve_service import RetrieveService

logger = logging.getLogger("filerelay.transfer")


class FunctionType(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"

    @classmethod
    def parse(cls, name: str | None) -> "FunctionType":
        """Exact, case-sensitive match on the function name."""
        try:
            return cls(name)
        except ValueError as exc:
            raise UnknownFunction(str(name) if name is not None else "") from exc


class GatewayService(BaseService):
    """Dispatches ``{functionType, data}`` requests.

    ``upload`` treats ``data`` as a source URL, ``download`` as an object key.
    Each upload checks the bucket (creating it if absent) once the source is
    fetched, right before the object is written.
    """

    flow = "gateway"

    def __init__(
        self,
        *,
        settings: Settings,
        storage: StorageClient,
        ingest: IngestService,
        retrieve: RetrieveService,
    ) -> None:
        super().__init__(settings=settings, storage=storage)
        self._ingest = ingest
        self._retrieve = retrieve

    def ensure_bucket(self) -> None:
        """Create the bucket in the configured location unless it exists.

        Raises:
            BackendError: If the check or the creation fails.
        """
        if self.storage.bucket_exists(bucket=self.bucket):
            return
        location = self.settings.bucket_location
        self.storage.create_bucket(bucket=self.bucket, region=location)
        logger.info(
            "bucket_created bucket=%s location=%s",
            self.bucket,
            location,
            extra={
                "extra": {
                    "event": "bucket_created",
                    "bucket": self.bucket,
                    "location": location,
                }
            },
        )

    def upload(self, url: str | None) -> GatewayResult:
        result = self._ingest.ingest(url, before_write=self.ensure_bucket)
        return GatewayResult(message=f"written bytes: {result.size_bytes}")

    def download(self, key: str | None) -> GatewayResult:
        result = self._retrieve.retrieve(key)
        return GatewayResult(message=f"read bytes: {result.size}", data=result.content)

    def dispatch(self, function_type: str | None, data: str | None) -> GatewayResult:
        """Run the function named by ``function_type`` with ``data``.

        Raises:
            UnknownFunction: Before any backend call, for unsupported names.
        """
        with self._track(function_type):
            kind = FunctionType.parse(function_type)
            if kind is FunctionType.UPLOAD:
                return self.upload(data)
            if kind is FunctionType.DOWNLOAD:
                return self.download(data)
            raise AssertionError(f"unhandled function type: {kind!r}")
