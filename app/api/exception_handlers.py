from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.schemas import ErrorOut
from app.domain.exceptions import AuthenticationError, DomainError

logger = logging.getLogger("app.errors")

_ERROR_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: "payload_too_large",
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: "unsupported_media_type",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "validation_error",
}


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def error_response(
    request: Request,
    *,
    status_code: int,
    error: str,
    detail: Any,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorOut(
        error=error,
        detail=jsonable_encoder(detail),
        path=request.url.path,  # no query string
        request_id=_request_id(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(),
        headers=headers,
    )


def internal_error_response(request: Request) -> JSONResponse:
    return error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error="internal_error",
        detail="Internal Server Error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the not-found, validation, domain and terminal error handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # The router raises a plain 404 when nothing matched; there is no route in scope then.
        if exc.status_code == status.HTTP_404_NOT_FOUND and request.scope.get("route") is None:
            return error_response(
                request,
                status_code=status.HTTP_404_NOT_FOUND,
                error="not_found",
                detail=f"Not Found - {request.url.path}",
            )

        return error_response(
            request,
            status_code=exc.status_code,
            error=_ERROR_CODES.get(exc.status_code, "http_error"),
            detail=exc.detail,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            request,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error="validation_error",
            detail=exc.errors(),
        )

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        logger.info(
            "Domain rule rejected request",
            extra={
                "request_id": _request_id(request),
                "http_method": request.method,
                "request_path": request.url.path,
                "status_code": exc.status_code,
            },
        )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return error_response(
            request,
            status_code=exc.status_code,
            error=exc.error_code,
            detail=exc.message,
            headers=headers,
        )

    # Failures inside the middleware stack are rendered by HttpLoggingMiddleware;
    # this only sees errors raised by the outer middleware themselves.
    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Request failed with unhandled exception",
            exc_info=exc,
            extra={
                "request_id": _request_id(request),
                "http_method": request.method,
                "request_path": request.url.path,
                "status_code": 500,
            },
        )
        return internal_error_response(request)
