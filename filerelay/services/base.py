from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

from filerelay.common.config import Settings
from filerelay.common.errors import TransferError
from filerelay.infra.observability.metrics import TRANSFER_BYTES, TRANSFERS
from filerelay.infra.storage.client import StorageClient

logger = logging.getLogger("filerelay.transfer")


class BaseService:
    """Holds the shared, read-only collaborators of a transfer flow."""

    flow: str = "transfer"

    def __init__(self, *, settings: Settings, storage: StorageClient):
        self._settings = settings
        self._storage = storage

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> StorageClient:
        return self._storage

    @property
    def bucket(self) -> str:
        return self._settings.S3_BUCKET or ""

    def _observe_size(self, size_bytes: int) -> None:
        TRANSFER_BYTES.labels(self.flow).observe(size_bytes)

    @contextmanager
    def _track(self, reference: str | None) -> Generator[None, None, None]:
        """Count the outcome of one invocation and log its failure class."""
        try:
            yield
        except TransferError as exc:
            TRANSFERS.labels(self.flow, exc.error_code).inc()
            logger.warning(
                "transfer_failed flow=%s reference=%s error_type=%s message=%s",
                self.flow,
                reference,
                exc.error_type,
                exc.message,
                extra={
                    "extra": {
                        "event": "transfer_failed",
                        "flow": self.flow,
                        "reference": reference,
                        **exc.to_dict(),
                    }
                },
            )
            raise
        except Exception:
            TRANSFERS.labels(self.flow, "internal_error").inc()
            raise
        TRANSFERS.labels(self.flow, "success").inc()
