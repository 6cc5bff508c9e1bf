"""
Client Configuration - Pydantic Settings for type-safe config.

NO DICTIONARIES - All configuration is strongly typed.
FAIL FAST - Invalid endpoints are rejected when settings load.
"""

import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_URL = "https://buy.itunes.apple.com/verifyReceipt"
SANDBOX_URL = "https://sandbox.itunes.apple.com/verifyReceipt"
DEFAULT_HTTP_TIMEOUT = 10.0


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Verifier settings loaded from APPSTORE_* environment variables."""

    # verifyReceipt endpoints
    production_url: str = PRODUCTION_URL
    sandbox_url: str = SANDBOX_URL

    # Production-only clients never fall back to the sandbox endpoint
    is_production: bool = False
    shared_secret: str | None = None  # App-specific shared secret (subscriptions)

    # HTTP transport
    http_timeout: float = DEFAULT_HTTP_TIMEOUT  # seconds

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Identity attached to logs, metrics and traces
    service_name: str = "appstore-receipt-verifier"
    version: str = "0.1.0"

    # Observability - Metrics
    metrics_enabled: bool = True

    # Observability - Tracing
    tracing_enabled: bool = False
    otlp_endpoint: str = "http://otel-collector:4317"
    otlp_insecure: bool = True

    model_config = SettingsConfigDict(
        env_prefix="APPSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate endpoint and transport configuration.

        A client built from broken settings would only fail on the first
        verification, so reject it while loading instead.
        """
        errors: list[str] = []

        for name in ("production_url", "sandbox_url"):
            url: str = getattr(self, name)
            if not url.startswith(("https://", "http://")):
                errors.append(f"{name.upper()} must be an http(s) URL, got: {url[:40]!r}")

        if self.http_timeout <= 0:
            errors.append(f"HTTP_TIMEOUT must be positive, got: {self.http_timeout}")

        if self.log_format not in ("json", "console"):
            errors.append(f"LOG_FORMAT must be 'json' or 'console', got: {self.log_format!r}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR - RECEIPT VERIFIER CANNOT START",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self


# Global settings instance - validates at import time
settings = Settings()


def get_settings() -> Settings:
    """Get verifier settings instance."""
    return settings
