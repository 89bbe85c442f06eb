"""Access log middleware: correlation ids and one structured line per request."""

from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.middleware.http_logging import HttpLoggingMiddleware


@pytest.fixture
def echo_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(HttpLoggingMiddleware)

    @app.get("/bookings/{booking_id}")
    async def booking(booking_id: str) -> dict[str, str]:
        return {"booking_id": booking_id}

    @app.post("/explode")
    async def explode() -> None:
        raise RuntimeError("explode")

    return app


def _access_records(caplog: pytest.LogCaptureFixture, level: int) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.name == "app.access" and r.levelno == level]


def test_access_line_carries_combined_log_fields(
    echo_app: FastAPI, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="app.access")

    with TestClient(echo_app) as client:
        res = client.get(
            "/bookings/bk_42?holder=ada",
            headers={"User-Agent": "agency-portal/2.1", "Referer": "https://agency.example/"},
        )

    assert res.status_code == 200
    [record] = _access_records(caplog, logging.INFO)
    assert record.getMessage() == "GET /bookings/bk_42 200"
    assert record.request_id == res.headers["x-request-id"]
    assert record.http_method == "GET"
    assert record.request_path == "/bookings/bk_42"
    assert record.route == "/bookings/{booking_id}"
    assert record.http_version == "1.1"
    assert record.status_code == 200
    assert record.response_bytes == len(res.content)
    assert record.referrer == "https://agency.example/"
    assert record.user_agent == "agency-portal/2.1"
    assert record.client_ip
    assert record.duration_ms >= 0


def test_unmatched_paths_are_labelled(echo_app: FastAPI, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="app.access")

    with TestClient(echo_app) as client:
        client.get("/nowhere")

    [record] = _access_records(caplog, logging.INFO)
    assert record.route == "unmatched"
    assert record.status_code == 404


@pytest.mark.parametrize(
    ("incoming", "propagated"),
    [
        ("req_abc-123", True),
        ("a" * 128, True),
        ("a" * 129, False),
        ("bad id", False),
        ("-leading-dash", False),
    ],
)
def test_request_id_propagation(echo_app: FastAPI, incoming: str, propagated: bool) -> None:
    with TestClient(echo_app) as client:
        res = client.get("/bookings/bk_1", headers={"X-Request-ID": incoming})

    if propagated:
        assert res.headers["x-request-id"] == incoming
    else:
        assert res.headers["x-request-id"] != incoming
        assert len(res.headers["x-request-id"]) == 32


def test_unhandled_exception_is_logged_and_answered_with_500(
    echo_app: FastAPI, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="app.access")

    with TestClient(echo_app) as client:
        res = client.post("/explode", headers={"X-Request-ID": "req_err_001"})

    assert res.status_code == 500
    assert res.headers["x-request-id"] == "req_err_001"
    assert res.json() == {
        "error": "internal_error",
        "detail": "Internal Server Error",
        "path": "/explode",
        "request_id": "req_err_001",
    }
    assert _access_records(caplog, logging.INFO) == []

    [record] = _access_records(caplog, logging.ERROR)
    assert record.getMessage() == "POST /explode failed"
    assert record.request_id == "req_err_001"
    assert record.route == "/explode"
    assert record.status_code == 500
    assert record.exc_info and record.exc_info[0] is RuntimeError
