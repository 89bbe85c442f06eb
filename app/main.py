"""ASGI application module for `uvicorn app.main:app`.

The `hotel-mock-api` console script (app.server) builds its own app from the
same factory and does not import this module.
"""

from __future__ import annotations

from app.core.logging import setup_logging
from app.core.settings import get_settings
from app.factory import create_app

settings = get_settings()
setup_logging(level=settings.log_level, service=settings.app_name)
app = create_app(settings)
