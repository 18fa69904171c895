"""Configuration management for F95API.

This module provides centralized configuration using Pydantic Settings.
Every field can be overridden with an ``F95_``-prefixed environment variable
or a ``.env`` file in the working directory.

Environment Profiles:
    - DEVELOPMENT: Verbose logging, human-readable output
    - PRODUCTION: INFO logging, JSON output
    - TESTING: ERROR logging, no file logging
    - STAGING: Production-like with INFO logging

Example:
    >>> from f95api.config import settings
    >>> print(settings.base_url)
    https://f95zone.to
    >>> print(settings.thread_url(42))
    https://f95zone.to/threads/42/
"""

from enum import StrEnum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    """Runtime environment with specific behavior profiles."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"
    STAGING = "staging"


class Settings(BaseSettings):
    """Application settings with environment variable support.

    Attributes:
        base_url: Platform root URL (always HTTPS)
        user_agent: User-Agent header sent with every request
        request_timeout: Overall timeout of a single request (seconds)
        connect_timeout: TCP connect timeout (seconds)
        transport_retries: Connection-level retries done by the HTTP transport
        posts_per_page: Posts per page requested before fetching a thread
        search_limit: Default maximum number of search results
        username: Platform account name used by the CLI
        password: Platform account password used by the CLI
    """

    model_config = SettingsConfigDict(
        env_prefix="F95_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment Configuration
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Runtime environment (development, production, testing, staging)",
    )

    # Platform Endpoints
    base_url: str = Field(
        "https://f95zone.to",
        description="Platform root URL",
    )

    # HTTP Configuration
    user_agent: str = Field(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/13.0 Safari/605.1.15",
        description="User-Agent header sent with every request",
    )
    request_timeout: float = Field(30.0, gt=0, description="Overall request timeout (seconds)")
    connect_timeout: float = Field(10.0, gt=0, description="TCP connect timeout (seconds)")
    transport_retries: int = Field(
        0,
        ge=0,
        le=5,
        description="Connection-level retries delegated to the HTTP transport",
    )

    # Retrieval Parameters
    posts_per_page: int = Field(
        100,
        description="Posts rendered per thread page (20, 40, 60 or 100)",
    )
    search_limit: int = Field(30, ge=1, description="Default maximum search results")

    # Credentials
    username: Optional[str] = Field(None, description="Platform account name")
    password: Optional[str] = Field(None, description="Platform account password")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (recommended for production)",
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Optional log file (rotated and compressed)",
    )

    @field_validator("base_url")
    @classmethod
    def enforce_https(cls, v: str) -> str:
        """Normalize the base URL to HTTPS without a trailing slash."""
        v = v.strip().rstrip("/")
        if v.startswith("http://"):
            v = "https://" + v[len("http://") :]
        elif not v.startswith("https://"):
            v = "https://" + v.lstrip("/")
        return v

    @field_validator("posts_per_page")
    @classmethod
    def validate_posts_per_page(cls, v: int) -> int:
        """The platform only accepts a few page sizes."""
        if v not in (20, 40, 60, 100):
            raise ValueError("posts_per_page must be one of 20, 40, 60, 100")
        return v

    @model_validator(mode="after")
    def apply_environment_profile(self) -> "Settings":
        """Apply environment-specific logging defaults.

        Profiles:
            - PRODUCTION: INFO logging (unless DEBUG requested), JSON logs
            - DEVELOPMENT: DEBUG logging, human-readable logs
            - TESTING: ERROR logging, no file logging
            - STAGING: INFO logging, JSON logs
        """
        if self.environment == Environment.PRODUCTION:
            if self.log_level == "DEBUG":
                self.log_level = "INFO"
            self.log_json = True

        elif self.environment == Environment.DEVELOPMENT:
            self.log_level = "DEBUG"
            self.log_json = False

        elif self.environment == Environment.TESTING:
            self.log_level = "ERROR"
            self.log_file = None
            self.log_json = False

        elif self.environment == Environment.STAGING:
            self.log_level = "INFO"
            self.log_json = True

        return self

    # -------------------------------------------------------------------------
    # Platform URLs
    # -------------------------------------------------------------------------

    @property
    def threads_url(self) -> str:
        return f"{self.base_url}/threads/"

    @property
    def posts_url(self) -> str:
        return f"{self.base_url}/posts/"

    @property
    def members_url(self) -> str:
        return f"{self.base_url}/members/"

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/login/login"

    @property
    def logout_url(self) -> str:
        return f"{self.base_url}/logout/"

    @property
    def latest_url(self) -> str:
        """JSON endpoint behind the "Latest Updates" listing."""
        return f"{self.base_url}/sam/latest_alpha/latest_data.php"

    @property
    def search_url(self) -> str:
        return f"{self.base_url}/search/search/"

    @property
    def posts_number_url(self) -> str:
        """Form endpoint that changes the number of posts per page."""
        return f"{self.base_url}/account/dpp-update"

    def thread_url(self, thread_id: int) -> str:
        """Canonical URL of a thread."""
        return f"{self.threads_url}{thread_id}/"

    @property
    def has_credentials(self) -> bool:
        """Check if username and password are both configured."""
        return bool(self.username) and bool(self.password)

    def redact(self, secret: Optional[str]) -> str:
        """Redact a secret for display.

        Args:
            secret: Value to redact

        Returns:
            Redacted string
        """
        if not secret:
            return "None"
        return f"{secret[:2]}...{secret[-2:]}" if len(secret) > 8 else "***"


def get_settings() -> Settings:
    """Build a fresh settings instance from the environment."""
    return Settings()


# Global settings instance
settings = get_settings()
