"""Prometheus metrics, served at /metrics when METRICS_ENABLED is set.

HTTP metrics are labelled by route template (or "unmatched"), never by raw
path, so probes of random URLs cannot grow the label set.
"""

from __future__ import annotations

import time
from typing import Literal

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.core.middleware.http_logging import route_label

NAMESPACE = "hotel_mock"

BookingEvent = Literal["prebooked", "booked", "cancelled", "edited"]

metrics_router = APIRouter(tags=["metrics"])

http_requests_total = Counter(
    "http_requests_total",
    "HTTP requests by method, route template and status code.",
    labelnames=("method", "route", "status_code"),
    namespace=NAMESPACE,
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    labelnames=("method", "route"),
    namespace=NAMESPACE,
    # Handlers answer from memory, so resolution matters at the low end.
    buckets=(0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)
booking_events_total = Counter(
    "booking_events_total",
    "Successful hotel operations by lifecycle event.",
    labelnames=("event",),
    namespace=NAMESPACE,
)
search_results = Histogram(
    "search_results",
    "Hotels returned per search.",
    namespace=NAMESPACE,
    buckets=(0, 1, 2, 5, 10),
)


def record_booking_event(event: BookingEvent) -> None:
    booking_events_total.labels(event=event).inc()


def record_search(result_count: int) -> None:
    search_results.observe(result_count)


class PrometheusMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            route = route_label(request)
            http_requests_total.labels(
                method=request.method, route=route, status_code=str(status_code)
            ).inc()
            http_request_duration_seconds.labels(method=request.method, route=route).observe(
                time.perf_counter() - started
            )


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
