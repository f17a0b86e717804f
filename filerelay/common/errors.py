"""Error taxonomy for the transfer pipeline.

Every stage raises one of these types and lets it propagate unchanged;
callers (HTTP routes, serverless handlers) only translate them at the edge.
"""

from __future__ import annotations

from typing import Any


class TransferError(Exception):
    """Base class for classified transfer failures."""

    error_code = "transfer_error"
    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = {k: v for k, v in details.items() if v is not None}

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "errorType": self.error_type,
            "errorCode": self.error_code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = dict(self.details)
        return payload


class InvalidRequest(TransferError):
    """Malformed input; retrying the same request cannot succeed."""

    error_code = "invalid_request"
    status_code = 400


class UnknownFunction(InvalidRequest):
    """The gateway was asked for a function it does not provide."""

    error_code = "unknown_function"

    def __init__(self, function_name: str) -> None:
        super().__init__(
            f'function type "{function_name}" is invalid',
            function_name=function_name,
        )
        self.function_name = function_name


class FetchError(TransferError):
    """The remote source could not be retrieved."""

    error_code = "fetch_failed"
    status_code = 502


class NotFound(TransferError):
    """The requested object does not exist in the backend."""

    error_code = "not_found"
    status_code = 404


class StagingError(TransferError):
    """Buffering a stream into memory failed."""

    error_code = "staging_failed"
    status_code = 500


class BackendError(TransferError):
    """The storage backend rejected or failed an operation."""

    error_code = "backend_error"
    status_code = 502


class WriteError(BackendError):
    """The storage backend rejected a put."""

    error_code = "write_failed"


class ConfigurationError(TransferError):
    """Required configuration is missing or malformed. Raised at startup only."""

    error_code = "configuration_error"
    status_code = 500

    def __init__(self, message: str, *, problems: list[str] | None = None) -> None:
        super().__init__(message)
        self.problems = list(problems or [message])
