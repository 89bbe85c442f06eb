from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class HealthOut(BaseModel):
    """Health check response."""

    status: Literal["OK"] = Field(
        description="Service status indicator. `OK` means the API process is up and responding.",
        examples=["OK"],
    )
    timestamp: datetime = Field(
        description="Server time when the probe was answered (ISO-8601, UTC).",
        examples=["2024-01-31T12:00:00.000000+00:00"],
    )
    service: str = Field(description="Service name.", examples=["Hotel Booking Mock API"])
    version: str = Field(description="Service version.", examples=["1.0.0"])


class ErrorOut(BaseModel):
    """Body returned for every error response."""

    error: str = Field(
        description="Machine-readable error code (e.g. `not_found`, `validation_error`).",
        examples=["not_found"],
    )
    detail: Any = Field(
        description="Human-readable message, or the list of validation errors for 422.",
        examples=["Not Found - /api/unknown"],
    )
    path: str = Field(description="Request path (without query string).", examples=["/api/unknown"])
    request_id: str | None = Field(
        default=None,
        description="Correlation id, also returned in the X-Request-ID header.",
    )
