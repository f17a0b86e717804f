import logging

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from filerelay import __version__
from filerelay.api.v1.deps import get_service_bundle
from filerelay.api.v1.routers.functions import router as functions_router
from filerelay.common.config import Settings, get_settings
from filerelay.common.errors import TransferError
from filerelay.common.logging import setup_logging
from filerelay.infra.observability.metrics import metrics_app
from filerelay.infra.observability.middleware import MetricsMiddleware
from filerelay.services.bundle import ServiceBundle, build_service_bundle

ERROR_CODE_BY_STATUS = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    415: "unsupported_media_type",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
}


def _normalize_detail(detail):
    if isinstance(detail, dict):
        maybe_code = detail.get("error_code")
        cleaned = {k: v for k, v in detail.items() if k != "error_code"}
        if len(cleaned) == 1 and "message" in cleaned:
            cleaned = cleaned["message"]
        if not cleaned:
            cleaned = None
        return cleaned, maybe_code if isinstance(maybe_code, str) else None
    return detail, None


def _resolve_error_code(status_code: int, override: str | None = None) -> str:
    if override:
        return override
    if status_code == 422:
        return "validation_error"
    return ERROR_CODE_BY_STATUS.get(status_code, "unknown_error")


def _describe_storage_target(settings: Settings) -> str:
    parts = [
        f"flavor={settings.STORAGE_FLAVOR}",
        f"bucket={settings.S3_BUCKET}",
        f"region={settings.S3_REGION}",
        f"endpoint={settings.endpoint_url or '<aws default>'}",
    ]
    return ", ".join(parts)


def _problem(request: Request, status_code: int, title: str, detail, code: str):
    return JSONResponse(
        status_code=status_code,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": title,
            "status": status_code,
            "detail": detail,
            "error_code": code,
            "instance": str(request.url),
            "request_id": request.headers.get("X-Request-Id"),
        },
    )


def _log_edge_error(request: Request, status_code: int, event: str, **fields) -> None:
    """Log an error response once, at WARNING for 4xx and ERROR for 5xx."""
    logging.getLogger("http").log(
        logging.WARNING if status_code < 500 else logging.ERROR,
        "%s status=%s method=%s path=%s request_id=%s",
        event,
        status_code,
        request.method,
        request.url.path,
        request.headers.get("X-Request-Id"),
        extra={
            "extra": {
                "event": event,
                "status": status_code,
                "method": request.method,
                "route": request.url.path,
                "request_id": request.headers.get("X-Request-Id"),
                **fields,
            }
        },
    )


def create_app(
    settings: Settings | None = None,
    services: ServiceBundle | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)
    startup_logger = logging.getLogger("filerelay.startup")
    try:
        services = services or build_service_bundle(settings)
    except TransferError as exc:
        startup_logger.error(
            "配置校验失败，服务不会启动。[event=configuration_invalid] (%s)",
            exc.message,
        )
        raise
    startup_logger.info(
        "存储后端已就绪。[event=storage_configured] (%s)",
        _describe_storage_target(settings),
    )

    app = FastAPI(
        title="File Relay Service",
        version=__version__,
        description="Fetch files from URLs into S3-compatible storage and back",
    )
    app.state.services = services
    app.state.trace_http = settings.TRACE_HTTP

    app.include_router(functions_router, prefix="/api/v1", tags=["functions"])

    if settings.ENABLE_METRICS:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", metrics_app)

    @app.exception_handler(TransferError)
    async def transfer_error_handler(request: Request, exc: TransferError):
        _log_edge_error(request, exc.status_code, "transfer_error", **exc.to_dict())
        detail = {"message": exc.message, "error_type": exc.error_type}
        if exc.details:
            detail["details"] = jsonable_encoder(exc.details)
        return _problem(
            request, exc.status_code, "Transfer Error", detail, exc.error_code
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail, code_override = _normalize_detail(exc.detail)
        _log_edge_error(request, exc.status_code, "http_exception", detail=detail)
        return _problem(
            request,
            exc.status_code,
            "HTTP Error",
            detail,
            _resolve_error_code(exc.status_code, code_override),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        errors = jsonable_encoder(exc.errors())
        _log_edge_error(request, 422, "request_invalid", errors=len(errors))
        return _problem(
            request, 422, "Validation Error", errors, _resolve_error_code(422)
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/ready")
    def ready(bundle: ServiceBundle = Depends(get_service_bundle)):
        bucket = bundle.settings.S3_BUCKET
        try:
            exists = bundle.storage.bucket_exists(bucket=bucket)
        except TransferError as exc:
            return {"status": "not_ready", "detail": {"storage": exc.message}}
        if not exists:
            return {"status": "not_ready", "detail": {"missing_bucket": bucket}}
        return {"status": "ready"}

    return app


if __name__ == "__main__":
    uvicorn.run("filerelay.main:create_app", factory=True, host="0.0.0.0", port=8000)
