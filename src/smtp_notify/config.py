"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.notifications.models import TopicPolicy
from .domain.notifications.truncator import DEFAULT_MESSAGE_LIMIT


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Environment Variables:
        SMTP_HOST: Bind address (default 0.0.0.0)
        SMTP_PORT: Listen port (default 2525)
        SMTP_DOMAIN: Domain recipients must use, e.g. ntfy.sh (required)
        SMTP_ADDR_PREFIX: Local-part prefix stripped before the topic
        SMTP_MAX_MESSAGE_BYTES: Largest accepted DATA payload
        SMTP_AUTH_REQUIRE_TLS: Only offer AUTH after STARTTLS
        PUBLISH_BASE_URL: Root URL of the pub/sub server (required)
        PUBLISH_TIMEOUT: Publish request timeout in seconds
        MESSAGE_LIMIT: Body byte budget of a notification
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default True)
        METRICS_PORT: Serve Prometheus metrics on this port when set
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # SMTP listener
    SMTP_HOST: str = "0.0.0.0"
    SMTP_PORT: int = 2525
    SMTP_DOMAIN: str
    SMTP_ADDR_PREFIX: str = ""
    SMTP_MAX_MESSAGE_BYTES: int = 1_048_576  # 1 MB
    SMTP_AUTH_REQUIRE_TLS: bool = True

    # Publishing
    PUBLISH_BASE_URL: str
    PUBLISH_TIMEOUT: float = 30.0
    MESSAGE_LIMIT: int = DEFAULT_MESSAGE_LIMIT

    # Observability
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    METRICS_PORT: Optional[int] = None

    @field_validator("SMTP_DOMAIN")
    @classmethod
    def domain_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("SMTP_DOMAIN must not be empty")
        return value

    @field_validator("MESSAGE_LIMIT", "SMTP_MAX_MESSAGE_BYTES")
    @classmethod
    def positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    def topic_policy(self) -> TopicPolicy:
        """Recipient policy derived from SMTP_DOMAIN and SMTP_ADDR_PREFIX."""
        return TopicPolicy(domain=self.SMTP_DOMAIN, prefix=self.SMTP_ADDR_PREFIX)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache for singleton behavior.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
