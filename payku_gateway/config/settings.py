"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # PAYKU Configuration
    payku_api_key: str = Field(default="", description="PAYKU API key (sent as X-API-Key)")
    payku_secret_key: str = Field(default="", description="PAYKU shared secret for HMAC signing")
    payku_base_url: str = Field(
        default="https://payku.my.id/api", description="PAYKU REST API base URL"
    )

    # Redis Configuration
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Key/value store connection URL"
    )
    redis_token: Optional[str] = Field(
        default=None, description="Key/value store access token (sent as the Redis password)"
    )

    # Rate Limiting
    rate_limit_interval_ms: int = Field(
        default=60_000,
        gt=0,
        description="Minimum interval between transaction creations per client (milliseconds)",
    )

    # Application Configuration
    app_name: str = Field(default="payku-gateway", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_workers: int = Field(default=1, description="Number of API workers")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("payku_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("PAYKU base URL must start with 'http://' or 'https://'")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @property
    def has_payku_credentials(self) -> bool:
        """Check whether both PAYKU credentials are configured."""
        return bool(self.payku_api_key and self.payku_secret_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
