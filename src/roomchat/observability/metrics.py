from __future__ import annotations

"""Prometheus metrics for the Roomchat proxy.

Adds an HTTP middleware that records request latency per method/path/status
and a counter of gateway relay outcomes.
"""

import time
from typing import Callable, Awaitable

from prometheus_client import Counter, Histogram
from starlette.requests import Request
from starlette.responses import Response

# Completion calls dominate; buckets reach well past typical LLM latencies
REQUEST_LATENCY = Histogram(
    "roomchat_request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=("method", "path", "status"),
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

GATEWAY_RELAYS = Counter(
    "roomchat_gateway_relays_total",
    "Completion relays to the upstream provider by outcome",
    labelnames=("outcome",),
)


def sanitize_path(path: str) -> str:
    """Collapse per-session paths (e.g. /api/sessions/{id}/turns) to a coarse label."""
    if not path:
        return "/"
    segs = [s for s in path.split("?")[0].split("/") if s]
    if not segs:
        return "/"
    if segs[0] == "api" and len(segs) > 1:
        return "/api/" + segs[1]
    return "/" + segs[0]


def route_label(request: Request) -> str:
    """Label by the matched route template, so every session shares one series."""
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    if template:
        return template
    return sanitize_path(request.url.path)


def metrics_middleware_factory() -> Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]:
    async def middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)
        start = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            REQUEST_LATENCY.labels(method=request.method, path=route_label(request), status=status).observe(
                time.perf_counter() - start
            )

    return middleware
