"""Prometheus metrics for the HTTP surface and the chat relay.

HTTP timing is taken in a plain ASGI middleware rather than
``@app.middleware("http")`` so that a streamed response is measured until its
last frame, not just until headers go out.
"""

import time
from typing import Any

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds, including the full body of streamed responses",
    ["method", "path"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 20, 40, 80),
)
REQUEST_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "In-progress HTTP requests (open streams included)",
    ["method"],
)

RELAY_ROUNDS = Counter(
    "agent_relay_rounds_total",
    "Completion provider rounds started by the chat relay",
)
RELAY_ERRORS = Counter(
    "agent_relay_errors_total",
    "Chat relay terminal errors by kind",
    ["kind"],
)
TOOL_EXECUTIONS = Counter(
    "agent_tool_executions_total",
    "Server tool executions by tool and outcome",
    ["tool", "status"],
)


def _route_path(scope: Scope) -> str:
    # Route template, not the raw URL, to keep label cardinality bounded
    route: Any | None = scope.get("route")
    path = getattr(route, "path", None)
    return path if isinstance(path, str) and path else "unknown"


class MetricsMiddleware:
    """Counts requests and times them until the response body is complete."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        status_code = "500"
        start = time.perf_counter()
        REQUEST_IN_PROGRESS.labels(method=method).inc()

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = str(message["status"])
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            path = _route_path(scope)
            REQUEST_LATENCY.labels(method=method, path=path).observe(time.perf_counter() - start)
            REQUEST_COUNT.labels(method=method, path=path, status_code=status_code).inc()
            REQUEST_IN_PROGRESS.labels(method=method).dec()


def setup_metrics(app: FastAPI) -> None:
    """Attach Prometheus metrics and /metrics endpoint to the app."""
    app.add_middleware(MetricsMiddleware)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
