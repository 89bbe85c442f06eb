"""Access log middleware.

Writes one structured line per request carrying the fields of the classic
"combined" access log (client, method, path, protocol, status, response size,
referrer, user agent) plus a correlation id and latency. Bodies and query
strings are never logged: logins carry passwords and bookings carry guest data.
Unhandled exceptions are logged with their stack trace and answered with the
standard 500 error body.
"""

from __future__ import annotations

import logging
import re
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.api.exception_handlers import internal_error_response

logger = logging.getLogger("app.access")

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def request_id_for(request: Request) -> str:
    """Propagate a well-formed incoming X-Request-ID, otherwise mint a new one."""

    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    if _REQUEST_ID_RE.fullmatch(incoming):
        return incoming
    return uuid.uuid4().hex


def route_label(request: Request) -> str:
    """Return the matched route template (e.g. /api/hotel/search) or "unmatched"."""

    path = getattr(request.scope.get("route"), "path", None)
    return path if isinstance(path, str) and path else "unmatched"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 2)


def _access_fields(request: Request) -> dict[str, object]:
    client = request.client
    return {
        "request_id": getattr(request.state, "request_id", None),
        "client_ip": client.host if client else None,
        "http_method": request.method,
        "request_path": request.url.path,
        "route": route_label(request),
        "http_version": request.scope.get("http_version"),
        "referrer": request.headers.get("referer"),
        "user_agent": request.headers.get("user-agent"),
    }


class HttpLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation id and write its access log line."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = request_id = request_id_for(request)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s failed",
                request.method,
                request.url.path,
                extra={
                    **_access_fields(request),
                    "status_code": 500,
                    "duration_ms": _elapsed_ms(started),
                },
            )
            # The 500 must still pass back through the CORS and security header layers.
            response = internal_error_response(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        response.headers[REQUEST_ID_HEADER] = request_id
        size = response.headers.get("content-length")
        logger.info(
            "%s %s %d",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                **_access_fields(request),
                "status_code": response.status_code,
                "response_bytes": int(size) if size is not None else None,
                "duration_ms": _elapsed_ms(started),
            },
        )
        return response
