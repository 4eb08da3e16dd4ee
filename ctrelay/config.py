"""Relay configuration — env-driven, overridable per run from the CLI.

Centralized config using pydantic-settings for environment variable
support.  Reads from a .env file and CTRELAY_* environment variables.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from ctrelay.models.options import DEFAULT_API_ENDPOINT


class RelayConfig(BaseSettings):
    """Relay configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CTRELAY_API_ENDPOINT=http://localhost:8787
        export CTRELAY_LOG_LEVEL=DEBUG
        export CTRELAY_NO_COLOR=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CTRELAY_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_endpoint: str = DEFAULT_API_ENDPOINT
    log_level: str = "WARNING"
    no_color: bool = False

    # HTTP
    user_agent: str = "CertWatch-Webhook/1.0"
    delivery_timeout_seconds: float = 10.0
    session_timeout_seconds: float = 15.0

    # Stream framing; bounds the maximum record size
    max_line_bytes: int = 1024 * 1024
