"""Configuration for the REST server.

The server can start without Jenkins credentials: job listings still work, and
trigger endpoints answer 503 until Jenkins is configured.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Settings for the REST API.

    Notes:
        - Unlike :class:`job_trigger_platform.engine.config.TriggerSettings`, this does
          NOT require Jenkins credentials at startup.
    """

    trigger_timeout_seconds: float = Field(
        default=300.0,
        ge=0,
        validation_alias="JOB_TRIGGER_TIMEOUT_SECONDS",
        description="Upper bound for one trigger request (0 means no timeout).",
    )

    # Dev-friendly CORS. Override via JOB_TRIGGER_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="JOB_TRIGGER_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
