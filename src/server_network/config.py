"""Configuration with pydantic-settings.

All values can be supplied through ``HCLOUD_``-prefixed environment variables
or a ``.env`` file:

    HCLOUD_TOKEN=...
    HCLOUD_ACTION_TIMEOUT=300
    HCLOUD_MAX_RETRIES=10
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .retry import RetryPolicy, exponential_backoff

DEFAULT_ENDPOINT = "https://api.hetzner.cloud/v1"


class Settings(BaseSettings):
    """Settings for the cloud API client and the convergence operations."""

    model_config = SettingsConfigDict(
        env_prefix="HCLOUD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Cloud API ===

    token: str = Field(default="", description="API token sent as bearer credential")
    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="Cloud API base URL")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    # === Action polling ===

    poll_interval: float = Field(
        default=0.5,
        ge=0,
        description="Delay between action status polls in seconds",
    )
    action_timeout: float = Field(
        default=600.0,
        gt=0,
        description="Maximum time to wait for an action to finish in seconds",
    )

    # === Retry on conflict ===

    max_retries: int = Field(
        default=5,
        ge=1,
        description="Maximum attempts for a mutating call that hits a conflict or lock",
    )
    retry_backoff_base: float = Field(default=1.0, ge=0, description="First backoff delay")
    retry_backoff_max: float = Field(default=30.0, ge=0, description="Backoff delay cap")

    # === Logging ===

    service_name: str = Field(
        default="server-network",
        description="Service name for structured logging",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    def retry_policy(self) -> RetryPolicy:
        """Build the conflict retry policy from the configured bounds."""
        return RetryPolicy(
            max_attempts=self.max_retries,
            backoff=exponential_backoff(self.retry_backoff_base, self.retry_backoff_max),
        )
