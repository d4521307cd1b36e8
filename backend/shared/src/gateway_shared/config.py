"""Runtime configuration read from the environment.

Secrets (webhook callback token, provider API key) are read from environment
variables first. When absent and SSM_PARAMETER_PREFIX is set they are fetched
from SSM Parameter Store under that prefix.
"""

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field

from gateway_shared.services.ssm_service import SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)

DEFAULT_XENDIT_BASE_URL = "https://api.xendit.co"
DEFAULT_XENDIT_API_VERSION = "2024-11-11"


class Settings(BaseModel):
    """Gateway settings."""

    environment: str = "dev"
    webhook_callback_token: str | None = None
    xendit_api_key: str | None = None
    xendit_base_url: str = DEFAULT_XENDIT_BASE_URL
    xendit_api_version: str = DEFAULT_XENDIT_API_VERSION
    xendit_timeout_seconds: float = 30.0
    table_prefix: str = "xendit-gateway-dev"
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"
    ssm_parameter_prefix: str | None = None
    idempotency_ttl_seconds: int = 24 * 60 * 60
    idempotency_sweep_threshold: int = 1000
    webhook_retention_seconds: float | None = None
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 100

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        environment = os.environ.get("ENVIRONMENT", "dev")
        ssm_prefix = os.environ.get("SSM_PARAMETER_PREFIX") or None
        cors = os.environ.get("CORS_ORIGIN", "http://localhost:3000")

        return cls(
            environment=environment,
            webhook_callback_token=_resolve_secret(
                "WEBHOOK_CALLBACK_TOKEN", "webhook_callback_token", ssm_prefix
            ),
            xendit_api_key=_resolve_secret("XENDIT_API_KEY", "xendit_api_key", ssm_prefix),
            xendit_base_url=os.environ.get("XENDIT_BASE_URL", DEFAULT_XENDIT_BASE_URL),
            xendit_api_version=os.environ.get("XENDIT_API_VERSION", DEFAULT_XENDIT_API_VERSION),
            xendit_timeout_seconds=float(os.environ.get("XENDIT_TIMEOUT_SECONDS", "30")),
            table_prefix=os.environ.get(
                "DYNAMODB_TABLE_PREFIX", f"xendit-gateway-{environment}"
            ),
            cors_origins=[origin.strip() for origin in cors.split(",") if origin.strip()],
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            ssm_parameter_prefix=ssm_prefix,
            idempotency_ttl_seconds=int(os.environ.get("IDEMPOTENCY_TTL_SECONDS", "86400")),
            idempotency_sweep_threshold=int(
                os.environ.get("IDEMPOTENCY_SWEEP_THRESHOLD", "1000")
            ),
            webhook_retention_seconds=_optional_float(os.environ.get("WEBHOOK_RETENTION_SECONDS")),
            rate_limit_window_ms=int(os.environ.get("RATE_LIMIT_WINDOW_MS") or 900000),
            rate_limit_max_requests=int(os.environ.get("RATE_LIMIT_MAX_REQUESTS") or 100),
        )


def _optional_float(value: str | None) -> float | None:
    return float(value) if value else None


def _resolve_secret(env_var: str, parameter: str, ssm_prefix: str | None) -> str | None:
    """Read a secret from the environment, falling back to SSM."""
    value = os.environ.get(env_var)
    if value:
        return value
    if not ssm_prefix:
        return None

    name = f"{ssm_prefix.rstrip('/')}/{parameter}"
    try:
        return get_ssm_service().get_parameter(name)
    except SSMServiceError as e:
        # Left unset so dependent features fail closed.
        logger.warning("Secret %s unavailable: %s", parameter, e)
        return None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings.from_env()


def reset_settings() -> None:
    """Clear cached settings (for testing only)."""
    get_settings.cache_clear()
