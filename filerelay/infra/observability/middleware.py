import json
import logging
import time
import uuid
from typing import Any

from fastapi import Request
from starlette.concurrency import iterate_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from filerelay.common.config import get_settings
from filerelay.infra.observability.metrics import LATENCY, REQUESTS

REQUEST_ID_HEADER = "X-Request-Id"
TRACE_BODY_LIMIT = 2048
PAYLOAD_PREVIEW_CHARS = 64

logger = logging.getLogger("http")


def _route_label(request: Request) -> str:
    # 使用路由模板，避免对象 key 进入指标标签
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records request metrics, propagates X-Request-Id, logs each request.

    With ``TRACE_HTTP`` enabled, request and response bodies are logged too.
    Credentials are masked and transferred file content (base64 ``content`` /
    ``data`` fields) is reduced to its length.
    """

    # 传输内容以 base64 形式出现在这些字段中，日志里只记录长度
    PAYLOAD_KEYS = {"content", "data"}
    SENSITIVE_KEYS = {
        "secret",
        "token",
        "authorization",
        "x-api-key",
        "s3_secret_access_key",
        "secretaccesskey",
    }

    def _mask(self, obj: Any) -> Any:
        if isinstance(obj, list):
            return [self._mask(item) for item in obj]
        if not isinstance(obj, dict):
            return obj
        masked: dict[str, Any] = {}
        for key, value in obj.items():
            name = key.lower() if isinstance(key, str) else key
            if name in self.SENSITIVE_KEYS:
                masked[key] = "***"
            elif (
                name in self.PAYLOAD_KEYS
                and isinstance(value, str)
                and len(value) > PAYLOAD_PREVIEW_CHARS
            ):
                masked[key] = f"<{len(value)} chars>"
            else:
                masked[key] = self._mask(value)
        return masked

    def _render_body(self, raw: bytes) -> str | None:
        if not raw:
            return None
        try:
            parsed = json.loads(raw.decode("utf-8", errors="replace"))
        except ValueError:
            return f"<{len(raw)} bytes non-json>"
        text = json.dumps(self._mask(parsed), ensure_ascii=False)
        if len(text) > TRACE_BODY_LIMIT:
            text = text[:TRACE_BODY_LIMIT] + "...<truncated>"
        return text

    async def _capture_request(self, request: Request) -> str | None:
        raw = await request.body()

        async def replay():
            return {"type": "http.request", "body": raw, "more_body": False}

        request._receive = replay
        return self._render_body(raw)

    async def _capture_response(self, response: Response) -> str | None:
        chunks = [chunk async for chunk in response.body_iterator]
        raw = b"".join(chunks)
        response.body_iterator = iterate_in_threadpool(iter([raw]))
        return self._render_body(raw)

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        trace = getattr(request.app.state, "trace_http", None)
        if trace is None:
            trace = get_settings().TRACE_HTTP
        fields: dict[str, Any] = {
            "method": request.method,
            "request_id": request_id,
        }
        if trace:
            fields["request_body"] = await self._capture_request(request)

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.perf_counter() - start) * 1000, 3)
            logger.exception(
                "request_error method=%s route=%s duration_ms=%.3f request_id=%s",
                request.method,
                request.url.path,
                duration_ms,
                request_id,
                extra={
                    "extra": {
                        **fields,
                        "route": request.url.path,
                        "status": 500,
                        "duration_ms": duration_ms,
                        "exception": repr(exc),
                    }
                },
            )
            raise

        elapsed = time.perf_counter() - start
        route = _route_label(request)
        REQUESTS.labels(request.method, route, str(response.status_code)).inc()
        LATENCY.labels(request.method, route).observe(elapsed)
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)

        if trace:
            fields["response_body"] = await self._capture_response(response)

        duration_ms = round(elapsed * 1000, 3)
        fields.update(
            route=route, status=response.status_code, duration_ms=duration_ms
        )
        logger.log(
            _level_for(response.status_code),
            "request method=%s route=%s status=%s duration_ms=%.3f request_id=%s",
            request.method,
            route,
            response.status_code,
            duration_ms,
            request_id,
            extra={"extra": fields},
        )
        return response
