"""In-memory staging of streamed bodies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from filerelay.common.errors import StagingError
from filerelay.pipeline.content_type import sniff_content_type

logger = logging.getLogger("filerelay.staging")

DEFAULT_CHUNK_SIZE = 64 * 1024
# Upper bound on up-front allocation; a larger declared length grows on demand.
MAX_PREALLOCATE_BYTES = 8 * 1024 * 1024


class Readable(Protocol):
    def read(self, amt: int | None = ...) -> bytes: ...


@dataclass(frozen=True, slots=True)
class StagedPayload:
    """A fully buffered body plus what was learned while buffering it."""

    data: bytes
    detected_content_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def stage_stream(
    stream: Readable,
    *,
    declared_length: int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_bytes: int | None = None,
) -> StagedPayload:
    """Drain ``stream`` into memory until it reports end of data.

    The buffer is pre-sized to ``declared_length`` (capped at
    ``MAX_PREALLOCATE_BYTES``) when the length is known and grows as needed
    otherwise. An empty read marks end of data, including
    on the very first read, so an empty body stages as an empty payload. A
    body that ends before ``declared_length`` is accepted as-is.

    Raises:
        StagingError: If reading fails, or the body exceeds ``max_bytes``.
    """
    if (
        max_bytes is not None
        and declared_length is not None
        and declared_length > max_bytes
    ):
        raise StagingError(
            f"declared length {declared_length} exceeds limit of {max_bytes} bytes",
            declared_length=declared_length,
        )

    buffer = bytearray(min(declared_length or 0, MAX_PREALLOCATE_BYTES))
    filled = 0
    while True:
        try:
            chunk = stream.read(chunk_size)
        except Exception as exc:
            logger.error(
                "staging_read_failed bytes_read=%s error=%s",
                filled,
                exc,
                extra={
                    "extra": {"event": "staging_read_failed", "bytes_read": filled}
                },
            )
            raise StagingError(
                f"Failed to read stream after {filled} bytes: {exc}",
                bytes_read=filled,
            ) from exc
        if not chunk:
            break

        end = filled + len(chunk)
        if max_bytes is not None and end > max_bytes:
            raise StagingError(
                f"stream exceeds limit of {max_bytes} bytes", bytes_read=end
            )
        buffer[filled:end] = chunk
        filled = end

    if filled < len(buffer):
        del buffer[filled:]

    data = bytes(buffer)
    return StagedPayload(data=data, detected_content_type=sniff_content_type(data))
