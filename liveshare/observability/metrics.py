# liveshare/observability/metrics.py
# minimal prometheus instrumentation

from __future__ import annotations

import os
import time
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    CollectorRegistry,
    CONTENT_TYPE_LATEST,
    REGISTRY as DEFAULT_REGISTRY,
    generate_latest,
)
from prometheus_client.multiprocess import MultiProcessCollector
from starlette.middleware.base import BaseHTTPMiddleware

# Detect multiprocess mode via environment.
# NOTE: PROMETHEUS_MULTIPROC_DIR must be set BEFORE importing this module in real multi-proc setups.
PROM_MP_DIR = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
HAVE_MP = bool(PROM_MP_DIR and os.path.isdir(PROM_MP_DIR))

# Choose registry depending on mode
if HAVE_MP:
    # Use a dedicated registry with multiprocess collector
    REGISTRY: CollectorRegistry = CollectorRegistry()
    MultiProcessCollector(REGISTRY)
else:
    REGISTRY = DEFAULT_REGISTRY

# In multiprocess mode, Gauge must set a multiprocess_mode.
_gauge_kwargs = {"multiprocess_mode": "livesum"} if HAVE_MP else {}

# // http instrumentation
REQUEST_COUNT = Counter(
    "liveshare_request_count",
    "Total request count",
    labelnames=("method", "path", "status"),
)
REQUEST_LATENCY = Histogram(
    "liveshare_request_latency_seconds",
    "Request latency in seconds",
)
REQUEST_IN_PROGRESS = Gauge(
    "liveshare_request_in_progress",
    "Requests currently in progress",
    ("method",),
    **_gauge_kwargs,
)
ERROR_COUNT = Counter(
    "liveshare_error_count",
    "Total error count",
    labelnames=("method", "path", "status"),
)

# // domain counters
BROADCAST_EVENTS = Counter(
    "liveshare_broadcast_events_total",
    "Broadcast session lifecycle events",
    labelnames=("event",),  # started | updated | expired | stopped
)
REQUEST_EVENTS = Counter(
    "liveshare_sharing_request_events_total",
    "Sharing request lifecycle events",
    labelnames=("event",),  # created | accepted | declined
)
LOCATION_PUSHES = Counter(
    "liveshare_location_push_updates_total",
    "Per-session results of mutual location pushes",
    labelnames=("result",),  # updated | failed
)
NOTIFICATIONS = Counter(
    "liveshare_notifications_total",
    "Notification emission outcomes",
    labelnames=("outcome",),  # enqueued | failed | dropped
)


def record_broadcast(event: str) -> None:
    BROADCAST_EVENTS.labels(event).inc()


def record_request(event: str) -> None:
    REQUEST_EVENTS.labels(event).inc()


def record_push(result: str, count: int = 1) -> None:
    if count:
        LOCATION_PUSHES.labels(result).inc(count)


def record_notification(outcome: str) -> None:
    NOTIFICATIONS.labels(outcome).inc()


def _route_template(request: Request) -> str:
    """Use the matched route path so tokens/ids do not explode label cardinality."""
    route = request.scope.get("route")
    path: Optional[str] = getattr(route, "path", None)
    return path or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count requests and observe latency for every HTTP call."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/metrics":
            return await call_next(request)
        method = request.method
        start = time.perf_counter()
        REQUEST_IN_PROGRESS.labels(method).inc()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            REQUEST_IN_PROGRESS.labels(method).dec()
            REQUEST_LATENCY.observe(time.perf_counter() - start)
            path = _route_template(request)
            REQUEST_COUNT.labels(method, path, str(status)).inc()
            if status >= 400:
                ERROR_COUNT.labels(method, path, str(status)).inc()


router = APIRouter(tags=["Metrics"])


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics() -> Response:
    """// expose /metrics"""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
