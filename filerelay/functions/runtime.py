"""Serverless function bodies.

Each handler takes the invocation event (a JSON object decoded to a dict) and
returns a JSON-compatible dict. Failures propagate as ``TransferError``
subclasses so the hosting runtime reports the error type and message.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from filerelay.api.v1.schemas.functions import (
    GatewayRequest,
    GatewayResponse,
    IngestRequest,
    IngestResponse,
    RetrieveRequest,
    RetrieveResponse,
)
from filerelay.common.config import Settings, get_settings
from filerelay.common.errors import InvalidRequest
from filerelay.common.logging import setup_logging
from filerelay.services.bundle import ServiceBundle, build_service_bundle

logger = logging.getLogger("filerelay.startup")

EventModel = TypeVar("EventModel", bound=BaseModel)


def _parse_event(model: type[EventModel], event: Any) -> EventModel:
    if not isinstance(event, Mapping):
        raise InvalidRequest("event must be a JSON object")
    try:
        return model.model_validate(dict(event))
    except ValidationError as exc:
        raise InvalidRequest(
            f"event is malformed: {exc.errors(include_url=False)}"
        ) from exc


class FunctionRuntime:
    """Binds the three function handlers to one service bundle."""

    def __init__(self, bundle: ServiceBundle) -> None:
        self._bundle = bundle

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FunctionRuntime":
        """Build the runtime at cold start.

        Raises:
            ConfigurationError: If required configuration is missing; the
                process should not serve requests in that case.
        """
        settings = settings or get_settings()
        setup_logging(settings.LOG_LEVEL)
        bundle = build_service_bundle(settings)
        logger.info(
            "function runtime ready [event=runtime_ready] "
            "(flavor=%s, bucket=%s, region=%s, endpoint=%s)",
            settings.STORAGE_FLAVOR,
            settings.S3_BUCKET,
            settings.S3_REGION,
            settings.endpoint_url or "<aws default>",
        )
        return cls(bundle)

    @property
    def bundle(self) -> ServiceBundle:
        return self._bundle

    def file_saver(self, event: Any, context: Any = None) -> dict[str, Any]:
        request = _parse_event(IngestRequest, event)
        result = self._bundle.ingest().ingest(request.request_url)
        return IngestResponse.from_result(result).model_dump(by_alias=True)

    def file_downloader(self, event: Any, context: Any = None) -> dict[str, Any]:
        request = _parse_event(RetrieveRequest, event)
        result = self._bundle.retrieve().retrieve(request.s3_file_key)
        return RetrieveResponse.from_result(result).model_dump(by_alias=True)

    def gateway(self, event: Any, context: Any = None) -> dict[str, Any]:
        request = _parse_event(GatewayRequest, event)
        result = self._bundle.gateway().dispatch(request.function_type, request.data)
        return GatewayResponse.from_result(result).model_dump(by_alias=True)
