"""Process entrypoint: bind the listener and serve the app with uvicorn.

Run with `hotel-mock-api` (or `python -m app.server`). PORT defaults to 3000.
"""

from __future__ import annotations

import logging
import socket
import sys

import uvicorn

from app.core.logging import setup_logging
from app.core.settings import Settings, get_settings
from app.domain.exceptions import StartupError
from app.factory import create_app

logger = logging.getLogger("app.startup")


def bind_socket(*, host: str, port: int) -> socket.socket:
    """Bind a listening TCP socket. Raises StartupError when the address is unavailable."""

    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family=family, type=socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise StartupError(f"Cannot bind {host}:{port}: {exc.strerror or exc}") from exc
    sock.set_inheritable(True)
    return sock


def serve(*, settings: Settings) -> None:
    """Bind, then run the server until the process is stopped. No retry on bind failure."""

    app = create_app(settings)
    sock = bind_socket(host=settings.host, port=settings.port)
    config = uvicorn.Config(
        app,
        log_config=None,  # keep the JSON logging configured by app.core.logging
        server_header=False,
        proxy_headers=True,
    )
    server = uvicorn.Server(config)
    server.run(sockets=[sock])


def main() -> None:
    settings = get_settings()
    setup_logging(level=settings.log_level, service=settings.app_name)
    try:
        serve(settings=settings)
    except StartupError as exc:
        logger.error("Startup failed", exc_info=exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
