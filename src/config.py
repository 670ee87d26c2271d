"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "L10 Meeting Agent"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Database (Turso)
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)

    # Integration event dispatch
    dispatch_webhook_url: str | None = Field(
        default=None,
        description="Endpoint that receives integration events as JSON",
    )
    dispatch_timeout_seconds: float = Field(default=10.0, gt=0)
    dispatch_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Webhook delivery attempts before the event is dead-lettered",
    )
    dispatch_in_background: bool = Field(
        default=True,
        description="Dispatch events in a background task instead of inline",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
