"""HTTP routes exposing the transfer functions.

Each route mirrors one serverless function: same request fields, same
response fields. Handlers are sync so blocking network calls run in the
threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from filerelay.api.v1.deps import get_service_bundle
from filerelay.api.v1.schemas.functions import (
    GatewayRequest,
    GatewayResponse,
    IngestRequest,
    IngestResponse,
    RetrieveRequest,
    RetrieveResponse,
)
from filerelay.services.bundle import ServiceBundle

router = APIRouter()


@router.post(
    "/functions/file-saver",
    response_model=IngestResponse,
    summary="Fetch a URL and store it",
    description=(
        "Download the file at `requestUrl` and store it in the bucket under "
        "the last segment of the URL path."
    ),
)
def save_file(
    payload: IngestRequest,
    services: ServiceBundle = Depends(get_service_bundle),
) -> IngestResponse:
    result = services.ingest().ingest(payload.request_url)
    return IngestResponse.from_result(result)


@router.post(
    "/functions/file-downloader",
    response_model=RetrieveResponse,
    summary="Return a stored object",
    description="Read the object stored under `s3FileKey` and return its bytes.",
)
def download_file(
    payload: RetrieveRequest,
    services: ServiceBundle = Depends(get_service_bundle),
) -> RetrieveResponse:
    result = services.retrieve().retrieve(payload.s3_file_key)
    return RetrieveResponse.from_result(result)


@router.post(
    "/functions/gateway",
    response_model=GatewayResponse,
    summary="Upload or download through one entrypoint",
    description=(
        '`functionType` "upload" stores the URL given in `data`; '
        '"download" returns the object whose key is given in `data`.'
    ),
)
def gateway(
    payload: GatewayRequest,
    services: ServiceBundle = Depends(get_service_bundle),
) -> GatewayResponse:
    result = services.gateway().dispatch(payload.function_type, payload.data)
    return GatewayResponse.from_result(result)
