"""Structured JSON logging to stdout, one object per line.

Records may carry request and booking correlation fields through `extra`;
every field is optional so uvicorn's own records format cleanly too.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import UTC, datetime
from typing import Any

# `extra` keys copied into the JSON payload when present on a record.
EXTRA_FIELDS = (
    "request_id",
    "client_ip",
    "http_method",
    "request_path",
    "route",
    "http_version",
    "status_code",
    "response_bytes",
    "duration_ms",
    "referrer",
    "user_agent",
    "booking_id",
    "result_count",
)


class JsonFormatter(logging.Formatter):
    """Render a record as a JSON object tagged with the service name."""

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
        }
        for field in EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(*, level: str = "INFO", service: str | None = None) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "app.core.logging.JsonFormatter",
                    "service": service,
                }
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": level, "handlers": ["stdout"]},
            "loggers": {
                # The access middleware already writes one line per request.
                "uvicorn.access": {"level": "WARNING"},
            },
        }
    )
