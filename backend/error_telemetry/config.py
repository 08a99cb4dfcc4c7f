"""Application configuration."""
import logging
from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings

TRACE_LEVEL = 5

LOG_LEVELS = {
    "trace": TRACE_LEVEL,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Header attributes that must never leave the process.
DEFAULT_ATTRIBUTES_EXCLUDE = ",".join(
    [
        "request.headers.cookie",
        "request.headers.authorization",
        "request.headers.proxyAuthorization",
        "request.headers.setCookie*",
        "request.headers.x*",
        "response.headers.cookie",
        "response.headers.authorization",
        "response.headers.proxyAuthorization",
        "response.headers.setCookie*",
        "response.headers.x*",
    ]
)


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "error-telemetry"
    ENV: str = "development"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: Literal["trace", "debug", "info", "warn", "error"] = "info"
    # Hand log records to a background listener so request handling never waits on the sink.
    LOG_ASYNC: bool = True

    # Telemetry collector
    TELEMETRY_ENABLED: bool = True
    TELEMETRY_DSN: SecretStr | None = None
    TELEMETRY_DISTRIBUTED_TRACING_ENABLED: bool = True
    TELEMETRY_TRACES_SAMPLE_RATE: float = 1.0
    # Comma-separated attribute patterns; a trailing "*" matches by prefix.
    TELEMETRY_ATTRIBUTES_EXCLUDE: str = DEFAULT_ATTRIBUTES_EXCLUDE

    # Deliberate-failure endpoints for verifying the error path. Never in production.
    DIAGNOSTICS_ENABLED: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True
        frozen = True

    @property
    def log_level_number(self) -> int:
        """Get LOG_LEVEL as a numeric logging level."""
        return LOG_LEVELS[self.LOG_LEVEL]

    @property
    def attributes_exclude_list(self) -> list[str]:
        """Get attribute exclusion patterns as list."""
        return [
            pattern.strip()
            for pattern in self.TELEMETRY_ATTRIBUTES_EXCLUDE.split(",")
            if pattern.strip()
        ]

    @property
    def telemetry_active(self) -> bool:
        return self.TELEMETRY_ENABLED and self.telemetry_dsn is not None

    @property
    def telemetry_dsn(self) -> str | None:
        """Get the collector DSN as plain text, or None when unset or blank."""
        if self.TELEMETRY_DSN is None:
            return None
        return self.TELEMETRY_DSN.get_secret_value() or None


def validate_production_settings(settings: Settings) -> None:
    """Fail closed on unsafe production configuration."""
    if settings.ENV.lower() != "production":
        return
    if settings.TELEMETRY_ENABLED and settings.telemetry_dsn is None:
        raise RuntimeError("TELEMETRY_DSN must be set in production when TELEMETRY_ENABLED is true.")
    if settings.DIAGNOSTICS_ENABLED:
        raise RuntimeError("DIAGNOSTICS_ENABLED must be false in production.")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
