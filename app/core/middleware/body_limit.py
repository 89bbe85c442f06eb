"""Request body size ceilings, enforced before any route handler reads the body.

JSON and URL-encoded bodies each get their own ceiling. Oversized requests are rejected
up front from Content-Length; chunked bodies without a length are counted while streaming.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status
from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.api.schemas import ErrorOut

logger = logging.getLogger("app.http")

JSON_CONTENT_TYPE = "application/json"
URLENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"


def media_type_of(content_type: str | None) -> str:
    """Return the bare, lower-cased media type of a Content-Type header value."""

    return (content_type or "").split(";", 1)[0].strip().lower()


def is_json_media_type(media_type: str) -> bool:
    return media_type == JSON_CONTENT_TYPE or media_type.endswith("+json")


class BodySizeLimitMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        *,
        json_limit_bytes: int,
        urlencoded_limit_bytes: int,
    ) -> None:
        self.app = app
        self.json_limit_bytes = json_limit_bytes
        self.urlencoded_limit_bytes = urlencoded_limit_bytes

    def _limit_for(self, media_type: str) -> int | None:
        if is_json_media_type(media_type):
            return self.json_limit_bytes
        if media_type == URLENCODED_CONTENT_TYPE:
            return self.urlencoded_limit_bytes
        # Other bodies are never parsed by the API.
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        limit = self._limit_for(media_type_of(headers.get("content-type")))
        if limit is None:
            await self.app(scope, receive, send)
            return

        declared = headers.get("content-length")
        if declared is not None and declared.strip().isdigit() and int(declared) > limit:
            response = self._too_large_response(scope=scope, limit=limit)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    # FastAPI re-raises HTTPException from body reading, so the registered
                    # handler renders it like any other 413.
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=_too_large_detail(limit),
                    )
            return message

        await self.app(scope, limited_receive, send)

    def _too_large_response(self, *, scope: Scope, limit: int) -> JSONResponse:
        request = Request(scope)
        request_id = getattr(request.state, "request_id", None)
        logger.info(
            "Request body rejected (too large)",
            extra={
                "request_id": request_id,
                "http_method": request.method,
                "request_path": request.url.path,
                "status_code": 413,
            },
        )
        body = ErrorOut(
            error="payload_too_large",
            detail=_too_large_detail(limit),
            path=request.url.path,
            request_id=request_id,
        )
        return JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content=body.model_dump(),
        )


def _too_large_detail(limit: int) -> str:
    return f"Request body exceeds the {limit} byte limit"
