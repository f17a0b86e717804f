from __future__ import annotations

from filerelay.common.config import Settings
from filerelay.infra.storage.client import StorageClient
from filerelay.pipeline.results import RetrieveResult
from filerelay.pipeline.staging import StagedPayload
from filerelay.pipeline.validator import validate_object_key
from filerelay.services.base import BaseService
from filerelay.services.object_io import ObjectReader


class RetrieveService(BaseService):
    """Validate → read → stage → result."""

    flow = "retrieve"

    def __init__(self, *, settings: Settings, storage: StorageClient) -> None:
        super().__init__(settings=settings, storage=storage)
        self._reader = ObjectReader(
            storage,
            bucket=self.bucket,
            chunk_size=settings.STAGING_CHUNK_SIZE,
            max_bytes=settings.STAGING_MAX_BYTES,
        )

    def read(self, raw_key: str | None) -> tuple[str, StagedPayload]:
        key = validate_object_key(raw_key)
        payload = self._reader.read(key)
        self._observe_size(payload.size_bytes)
        return key, payload

    def retrieve(self, raw_key: str | None) -> RetrieveResult:
        """Return the content stored under ``raw_key``.

        Raises:
            InvalidRequest: If the key is empty.
            NotFound: If no such object exists.
            BackendError: For transport or authorization failures.
            StagingError: If the body cannot be buffered.
        """
        with self._track(raw_key):
            key, payload = self.read(raw_key)
        return RetrieveResult(
            filename=key,
            content=payload.data,
            content_type=payload.detected_content_type,
        )
