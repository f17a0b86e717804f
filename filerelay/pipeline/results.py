"""Result shapes assembled at the end of each flow."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from urllib.parse import quote

from filerelay.infra.storage.client import ObjectLocation


def build_public_url(bucket: str, region: str, key: str) -> str:
    """Virtual-hosted style URL of an object stored in AWS S3."""
    return f"https://{bucket}.s3.{region}.amazonaws.com/{quote(key)}"


def encode_bytes(data: bytes) -> str:
    """Render bytes the way JSON runtimes serialize byte arrays: base64."""
    return base64.b64encode(data).decode("ascii")


@dataclass(frozen=True, slots=True)
class IngestResult:
    input_url: str
    location: ObjectLocation
    size_bytes: int
    content_type: str

    @property
    def s3_path(self) -> str:
        """Fully qualified URL when one is known, the bare key otherwise."""
        return self.location.public_url or self.location.key


@dataclass(frozen=True, slots=True)
class RetrieveResult:
    filename: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True, slots=True)
class GatewayResult:
    message: str
    data: bytes = b""
