from __future__ import annotations

import logging
import socket

import pytest
from fastapi.testclient import TestClient

from app import server
from app.core.settings import Settings
from app.factory import create_app
from app.domain.exceptions import StartupError


def test_bind_socket_raises_startup_error_when_port_is_taken() -> None:
    holder = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    holder.bind(("127.0.0.1", 0))
    holder.listen(1)
    port = holder.getsockname()[1]
    try:
        with pytest.raises(StartupError, match=str(port)):
            server.bind_socket(host="127.0.0.1", port=port)
    finally:
        holder.close()


def test_bind_socket_returns_bound_socket() -> None:
    sock = server.bind_socket(host="127.0.0.1", port=0)
    try:
        host, port = sock.getsockname()
        assert host == "127.0.0.1"
        assert port > 0
    finally:
        sock.close()


def test_main_exits_non_zero_on_startup_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(*, settings: Settings) -> None:
        raise StartupError("Cannot bind 0.0.0.0:3000: Address already in use")

    monkeypatch.setattr(server, "serve", _fail)

    with pytest.raises(SystemExit) as excinfo:
        server.main()
    assert excinfo.value.code == 1


def test_serve_binds_configured_port_without_retry(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, int]] = []

    def _bind(*, host: str, port: int) -> socket.socket:
        calls.append((host, port))
        raise StartupError("taken")

    monkeypatch.setattr(server, "bind_socket", _bind)

    with pytest.raises(StartupError):
        server.serve(settings=Settings(_env_file=None))
    assert calls == [("0.0.0.0", 3000)]


def test_serve_builds_a_single_app(monkeypatch: pytest.MonkeyPatch) -> None:
    built: list[Settings] = []

    def _create_app(settings: Settings):
        built.append(settings)
        return create_app(settings)

    def _bind(*, host: str, port: int) -> socket.socket:
        raise StartupError("taken")

    monkeypatch.setattr(server, "create_app", _create_app)
    monkeypatch.setattr(server, "bind_socket", _bind)
    settings = Settings(_env_file=None)

    with pytest.raises(StartupError):
        server.serve(settings=settings)
    assert built == [settings]


def test_startup_logs_every_routable_endpoint(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="app.startup")

    with TestClient(create_app(Settings(_env_file=None, port=4010))):
        pass

    messages = [r.getMessage() for r in caplog.records if r.name == "app.startup"]
    assert messages[0] == "Hotel Booking Mock API is running on port 4010"
    base = "http://localhost:4010"
    assert sorted(m.strip() for m in messages[1:]) == sorted(
        [
            f"GET {base}/health",
            f"POST {base}/api/auth/login",
            f"GET {base}/api/auth/profile",
            f"GET {base}/api/auth/demo-credentials",
            f"POST {base}/api/hotel/search",
            f"POST {base}/api/hotel/prebook",
            f"POST {base}/api/hotel/book",
            f"POST {base}/api/hotel/cancel",
            f"PUT {base}/api/hotel/edit",
        ]
    )
