from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_PORT = 3000

logger = logging.getLogger("app.settings")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(
        default="Hotel Booking Mock API",
        validation_alias=AliasChoices("APP_NAME", "app_name"),
        description="Service name reported by the health check.",
    )
    app_version: str = Field(
        default="1.0.0",
        validation_alias=AliasChoices("APP_VERSION", "app_version"),
        description="Service version reported by the health check.",
    )
    app_env: str = Field(
        default="production",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
        description="Runtime environment: development|production.",
    )

    # Listener
    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
        description="Interface the HTTP listener binds to.",
    )
    port: int = Field(
        default=DEFAULT_PORT,
        validation_alias=AliasChoices("PORT", "port"),
        description="TCP port to listen on. Falls back to 3000 when unset or invalid.",
    )

    # Request body ceilings
    json_body_limit_mb: int = Field(
        default=10,
        ge=1,
        validation_alias=AliasChoices("JSON_BODY_LIMIT_MB", "json_body_limit_mb"),
        description="Maximum accepted size for JSON request bodies (MiB).",
    )
    urlencoded_body_limit_kb: int = Field(
        default=100,
        ge=1,
        validation_alias=AliasChoices("URLENCODED_BODY_LIMIT_KB", "urlencoded_body_limit_kb"),
        description="Maximum accepted size for URL-encoded request bodies (KiB).",
    )

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
        description="Origins allowed by the CORS policy: comma-separated or a JSON list.",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
        description="Root log level (DEBUG, INFO, WARNING, ERROR).",
    )
    metrics_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("METRICS_ENABLED", "metrics_enabled"),
        description="Expose Prometheus metrics at /metrics.",
    )

    # Auth stub
    demo_username: str = Field(
        default="demo",
        validation_alias=AliasChoices("DEMO_USERNAME", "demo_username"),
    )
    demo_password: str = Field(
        default="demo123",
        validation_alias=AliasChoices("DEMO_PASSWORD", "demo_password"),
    )
    auth_token_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        validation_alias=AliasChoices("AUTH_TOKEN_TTL_SECONDS", "auth_token_ttl_seconds"),
        description="Lifetime of issued bearer tokens (seconds).",
    )

    # Hotel mock
    prebook_ttl_seconds: int = Field(
        default=900,
        ge=1,
        validation_alias=AliasChoices("PREBOOK_TTL_SECONDS", "prebook_ttl_seconds"),
        description="How long a prebook holds its price before it can no longer be booked.",
    )

    @field_validator("port", mode="before")
    @classmethod
    def _fallback_port(cls, value: Any) -> int:
        if value is None:
            return DEFAULT_PORT
        try:
            port = int(str(value).strip())
        except ValueError:
            logger.warning("Invalid PORT value %r, using %d", value, DEFAULT_PORT)
            return DEFAULT_PORT
        if not 0 < port < 65536:
            logger.warning("PORT %d out of range, using %d", port, DEFAULT_PORT)
            return DEFAULT_PORT
        return port

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()
        if text.startswith("["):
            return json.loads(text)
        origins = [origin.strip() for origin in text.split(",") if origin.strip()]
        return origins or ["*"]

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def json_body_limit_bytes(self) -> int:
        return int(self.json_body_limit_mb) * 1024 * 1024

    @property
    def urlencoded_body_limit_bytes(self) -> int:
        return int(self.urlencoded_body_limit_kb) * 1024

    @property
    def is_development(self) -> bool:
        return str(self.app_env).strip().lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
