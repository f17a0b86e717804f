from prometheus_client import Counter, Histogram, make_asgi_app

# 低基数标签：route 使用路由模板，flow/outcome 为固定枚举值
REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency in seconds",
    ["method", "route"],
)

TRANSFERS = Counter(
    "transfers_total",
    "Transfer pipeline invocations by flow and outcome",
    ["flow", "outcome"],
)

TRANSFER_BYTES = Histogram(
    "transfer_bytes",
    "Size of staged payloads in bytes",
    ["flow"],
    buckets=(1e3, 1e4, 1e5, 1e6, 1e7, 1e8, 1e9),
)

# /metrics 端点 ASGI 应用
metrics_app = make_asgi_app()
