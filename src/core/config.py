"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Expense Notifications API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(
        default=False,
        description="Render log lines as JSON (always on in production)",
    )

    # Outbound transports
    email_endpoint: str = Field(
        default="http://localhost:8000/api/notifications/email",
        description="Endpoint receiving POSTed email notifications",
    )
    sms_endpoint: str = Field(
        default="http://localhost:8000/api/notifications/sms",
        description="Endpoint receiving POSTed SMS notifications",
    )
    push_endpoint: str = Field(
        default="",
        description="Push relay endpoint; empty disables the push channel",
    )
    push_enabled: bool = Field(
        default=True,
        description="Whether the push relay is allowed to show notifications",
    )
    transport_timeout_seconds: float = Field(default=10.0, gt=0)

    # In-app store
    in_app_storage_dir: str = Field(default=".notifications")
    in_app_storage_key: str = Field(default="in_app_notifications")
    in_app_max_notifications: int = Field(default=100, ge=1)
    notification_ttl_days: int = Field(default=30, ge=1)
    deferred_max_per_user: int = Field(default=50, ge=1)
    cleanup_interval_seconds: int = Field(default=3600, ge=1)

    # Content
    currency_symbol: str = Field(default="৳")
    app_signature: str = Field(default="- Expense Manager")
    sms_cost_per_segment: float = Field(
        default=0.0075,
        description="Estimated price of one 153-character SMS segment",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
