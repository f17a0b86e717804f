"""Blocking HTTP fetcher for remote sources.

Dependencies:
    - requests
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

import requests

from filerelay.common.errors import FetchError

logger = logging.getLogger("filerelay.fetch")


@dataclass(slots=True)
class RemoteStream:
    """An open HTTP response body.

    ``declared_length`` is the server's Content-Length, or ``None`` when the
    header is missing, malformed, or describes an encoded (compressed) body.
    """

    url: str
    status_code: int
    body: Any
    declared_length: int | None
    declared_content_type: str | None

    def read(self, amt: int | None = None) -> bytes:
        return self.body.read(amt, decode_content=True)


def _declared_length(response: requests.Response) -> int | None:
    if response.headers.get("Content-Encoding"):
        return None
    raw = response.headers.get("Content-Length")
    if raw is None:
        return None
    try:
        length = int(raw)
    except ValueError:
        return None
    return length if length >= 0 else None


class RemoteFetcher:
    """Opens remote URLs with a shared ``requests.Session``."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
        require_success: bool = True,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout
        self._require_success = require_success

    @contextmanager
    def open(self, url: str) -> Iterator[RemoteStream]:
        """Issue a GET for ``url`` and yield its streamed body.

        The response is closed when the block exits, whether it succeeds or
        raises.

        Raises:
            FetchError: On connection failures, invalid responses, or (unless
                disabled) a non-2xx status.
        """
        try:
            response = self._session.get(url, stream=True, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error(
                "fetch_failed url=%s error=%s",
                url,
                exc,
                extra={"extra": {"event": "fetch_failed", "url": url}},
            )
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc

        try:
            if self._require_success and not 200 <= response.status_code < 300:
                logger.error(
                    "fetch_bad_status url=%s status=%s",
                    url,
                    response.status_code,
                    extra={
                        "extra": {
                            "event": "fetch_bad_status",
                            "url": url,
                            "status": response.status_code,
                        }
                    },
                )
                raise FetchError(
                    f"Fetching {url} returned HTTP {response.status_code}",
                    url=url,
                    status=response.status_code,
                )
            yield RemoteStream(
                url=url,
                status_code=response.status_code,
                body=response.raw,
                declared_length=_declared_length(response),
                declared_content_type=response.headers.get("Content-Type"),
            )
        finally:
            response.close()
