"""Configuration for the trigger engine.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Jenkins credentials belong to a service account; the API token is never
logged.
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TriggerSettings(BaseSettings):
    """Settings for talking to Jenkins.

    Environment variables:
    - JENKINS_URL
    - JENKINS_USERNAME
    - JENKINS_API_TOKEN
    - JENKINS_TIMEOUT_SECONDS   (optional)
    - LOG_LEVEL                 (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `TriggerSettings(_env_file=path_to_env)`.
    """

    # Empty defaults keep `TriggerSettings()` type-correct; the validator below
    # still insists on real values.
    jenkins_url: str = Field(
        default="",
        validation_alias="JENKINS_URL",
        description="Base URL of the Jenkins controller",
    )
    jenkins_username: str = Field(
        default="",
        validation_alias="JENKINS_USERNAME",
        description="Service account used for API calls",
    )
    jenkins_api_token: str = Field(
        default="",
        validation_alias="JENKINS_API_TOKEN",
        description="API token of the service account",
    )
    jenkins_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="JENKINS_TIMEOUT_SECONDS",
        description="Per-request HTTP timeout",
    )
    jenkins_use_crumb: bool = Field(
        default=True,
        validation_alias="JENKINS_USE_CRUMB",
        description="Fetch a CSRF crumb before state-changing calls",
    )
    jenkins_crumb_on_reads: bool = Field(
        default=False,
        validation_alias="JENKINS_CRUMB_ON_READS",
        description="Also attach a crumb to queue/build reads (for controllers that guard reads)",
    )

    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        validation_alias="JENKINS_RETRY_MAX_ATTEMPTS",
        description="Total attempts for a single remote call",
    )
    retry_backoff_base_seconds: float = Field(
        default=2.0,
        ge=0,
        validation_alias="JENKINS_RETRY_BACKOFF_BASE_SECONDS",
        description="Delay after the first failed attempt; doubles after each further one",
    )

    poll_max_attempts: int = Field(
        default=5,
        ge=1,
        le=50,
        validation_alias="JENKINS_POLL_MAX_ATTEMPTS",
        description="Queue item polls before giving up on confirming the build start",
    )
    poll_initial_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        validation_alias="JENKINS_POLL_INITIAL_DELAY_SECONDS",
        description="Wait after the first queue poll",
    )
    poll_backoff_factor: float = Field(
        default=1.5,
        ge=1,
        validation_alias="JENKINS_POLL_BACKOFF_FACTOR",
        description="Multiplier applied to the queue poll wait after each poll",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _require_jenkins_access(self) -> TriggerSettings:
        if not self.jenkins_url.strip():
            raise ValueError("JENKINS_URL is required")
        if not self.jenkins_username.strip():
            raise ValueError("JENKINS_USERNAME is required")
        if not self.jenkins_api_token.strip():
            raise ValueError("JENKINS_API_TOKEN is required")
        return self
