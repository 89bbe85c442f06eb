from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.openapi.docs import get_redoc_html
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from app.api.exception_handlers import register_exception_handlers
from app.api.schemas import ErrorOut, HealthOut
from app.auth.router import router as auth_router
from app.auth.service import TokenStore, demo_user_from_settings
from app.core.metrics import PrometheusMetricsMiddleware, metrics_router
from app.core.middleware.body_limit import BodySizeLimitMiddleware
from app.core.middleware.http_logging import REQUEST_ID_HEADER, HttpLoggingMiddleware
from app.core.middleware.security_headers import SecurityHeadersMiddleware
from app.core.settings import Settings, get_settings
from app.hotel.router import router as hotel_router
from app.hotel.service import BookingStore

logger = logging.getLogger("app.startup")

HOTEL_PREFIX = "/api/hotel"
AUTH_PREFIX = "/api/auth"

_DOCS_PATHS = ("/swagger", "/docs", "/openapi.json")


def _log_endpoints(*, app: FastAPI, settings: Settings) -> None:
    """Log the routable endpoints once the app starts (informational only)."""

    base_url = f"http://localhost:{settings.port}"
    logger.info("%s is running on port %d", settings.app_name, settings.port)
    for route in app.routes:
        if not isinstance(route, APIRoute):
            continue
        for method in sorted(route.methods - {"HEAD"}):
            logger.info("  %s %s%s", method, base_url, route.path)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # In-memory state lives for one app lifespan; a restart clears tokens and bookings.
        app.state.demo_user = demo_user_from_settings(settings)
        app.state.token_store = TokenStore(ttl_seconds=settings.auth_token_ttl_seconds)
        app.state.booking_store = BookingStore(prebook_ttl_seconds=settings.prebook_ttl_seconds)
        _log_endpoints(app=app, settings=settings)
        yield

    docs_enabled = settings.is_development
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Mock hotel booking API for integration testing.\n\n"
            "- Authenticate with the demo credentials (`GET /api/auth/demo-credentials`).\n"
            "- Hotel flow: search -> prebook -> book, then cancel or edit the booking.\n"
            "- All state is kept in memory and lost on restart."
        ),
        lifespan=lifespan,
        # Only /health and the two route groups are routable unless running in development.
        docs_url="/swagger" if docs_enabled else None,
        redoc_url=None,  # custom ReDoc page at /docs
        openapi_url="/openapi.json" if docs_enabled else None,
        responses={
            404: {"model": ErrorOut, "description": "Not found"},
            422: {"model": ErrorOut, "description": "Validation error"},
            500: {"model": ErrorOut, "description": "Unexpected failure"},
        },
        openapi_tags=[
            {
                "name": "health",
                "description": "Liveness probe for load balancers and orchestrators.",
            },
            {
                "name": "auth",
                "description": "Demo login issuing opaque bearer tokens.",
            },
            {
                "name": "hotel",
                "description": "Search, prebook, book, cancel and edit mock hotel bookings.",
            },
        ],
    )
    app.state.settings = settings

    # Starlette runs the last added middleware first. Request order:
    # security headers -> CORS -> access log -> (metrics) -> body size ceiling -> routes
    app.add_middleware(
        BodySizeLimitMiddleware,
        json_limit_bytes=settings.json_body_limit_bytes,
        urlencoded_limit_bytes=settings.urlencoded_body_limit_bytes,
    )
    if settings.metrics_enabled:
        app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(HttpLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(
        SecurityHeadersMiddleware,
        csp_exempt_paths=_DOCS_PATHS if docs_enabled else (),
    )

    register_exception_handlers(app)

    if docs_enabled:

        @app.get("/docs", include_in_schema=False)
        async def redoc_docs():
            return get_redoc_html(
                openapi_url=app.openapi_url or "/openapi.json",
                title=f"{app.title} - ReDoc",
                redoc_js_url="https://cdn.jsdelivr.net/npm/redoc@2.1.4/bundles/redoc.standalone.js",
            )

    @app.get(
        "/health",
        response_model=HealthOut,
        tags=["health"],
        summary="Health check",
        description=(
            "Lightweight endpoint to verify the API process is running. "
            "It has no side effects and never fails."
        ),
    )
    async def health() -> HealthOut:
        return HealthOut(
            status="OK",
            timestamp=datetime.now(UTC),
            service=settings.app_name,
            version=settings.app_version,
        )

    app.include_router(hotel_router, prefix=HOTEL_PREFIX)
    app.include_router(auth_router, prefix=AUTH_PREFIX)
    if settings.metrics_enabled:
        app.include_router(metrics_router)
    return app

