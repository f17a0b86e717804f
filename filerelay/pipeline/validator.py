"""Request validation and storage key derivation.

All functions here are pure: they never touch the network or the backend.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from urllib.parse import SplitResult, unquote, urlsplit

from filerelay.common.errors import InvalidRequest

SUPPORTED_SCHEMES = frozenset({"http", "https"})
# S3 rejects keys longer than 1024 bytes of UTF-8.
MAX_OBJECT_KEY_BYTES = 1024


@dataclass(frozen=True, slots=True)
class SourceURL:
    """A validated absolute source URL."""

    raw: str
    parts: SplitResult

    @property
    def path(self) -> str:
        return unquote(self.parts.path)


def parse_source_url(raw: str | None) -> SourceURL:
    """Parse ``raw`` as an absolute http(s) URL.

    Raises:
        InvalidRequest: If the value is empty, malformed, relative, lacks a
            host, or uses an unsupported scheme.
    """
    if raw is None or not raw.strip():
        raise InvalidRequest("source URL is required")
    if any(ch.isspace() or ord(ch) < 0x20 for ch in raw):
        raise InvalidRequest("source URL must not contain whitespace", url=raw)

    try:
        parts = urlsplit(raw)
        # .port raises ValueError for non-numeric or out-of-range ports
        parts.port
    except ValueError as exc:
        raise InvalidRequest(f"source URL is malformed: {exc}", url=raw) from exc

    if not parts.scheme:
        raise InvalidRequest("source URL must be absolute", url=raw)
    if parts.scheme.lower() not in SUPPORTED_SCHEMES:
        raise InvalidRequest(
            f"source URL scheme '{parts.scheme}' is not supported", url=raw
        )
    if not parts.hostname:
        raise InvalidRequest("source URL has no host", url=raw)
    return SourceURL(raw=raw, parts=parts)


def derive_object_key(source: SourceURL) -> str:
    """Return the storage key for ``source``: the last segment of its path.

    Query string, fragment and directory prefix are dropped, trailing slashes
    are ignored, and percent-escapes are decoded.

    Raises:
        InvalidRequest: If the path has no final segment to name the object.
    """
    path = source.path.rstrip("/")
    key = posixpath.basename(path)
    if not key or key in {".", ".."}:
        raise InvalidRequest(
            "source URL path has no file name to use as the storage key",
            url=source.raw,
        )
    return validate_object_key(key)


def validate_object_key(key: str | None) -> str:
    """Check that ``key`` can address an object.

    Raises:
        InvalidRequest: If the key is empty, blank or too long.
    """
    if key is None or not key.strip():
        raise InvalidRequest("object key is required")
    if len(key.encode("utf-8")) > MAX_OBJECT_KEY_BYTES:
        raise InvalidRequest(
            f"object key exceeds {MAX_OBJECT_KEY_BYTES} bytes", key=key[:64]
        )
    return key
