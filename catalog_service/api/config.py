"""
API Configuration
Settings and configuration for FastAPI application.
"""

import json
from typing import List, Optional, Any
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

from ..startup.coordinator import SchedulingMode


class APISettings(BaseSettings):
    """
    API configuration settings.

    Loaded from environment variables (see aliases) and an optional .env file.
    """

    # API Info
    app_name: str = "Catalog Startup Service"
    version: str = "0.1.0"
    description: str = "Startup health checks, background catalog sync, and product queries"

    # Server settings
    host: str = Field(default="0.0.0.0", alias="API_HOST")
    port: int = Field(default=8000, alias="API_PORT")
    reload: bool = Field(default=False, alias="API_RELOAD")

    # CORS settings
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        alias="API_CORS_ORIGINS"
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Database settings
    database_url: str = Field(default="sqlite:///products.db", alias="DATABASE_URL")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")
    reset_store_on_startup: bool = Field(default=True, alias="RESET_STORE_ON_STARTUP")

    # Startup scheduling
    startup_mode: SchedulingMode = Field(default=SchedulingMode.COOPERATIVE, alias="STARTUP_MODE")
    shutdown_timeout_seconds: float = Field(default=5.0, ge=0, alias="SHUTDOWN_TIMEOUT_SECONDS")

    # Health check timings
    health_check_time_scale: float = Field(default=1.0, ge=0, alias="HEALTH_CHECK_TIME_SCALE")
    health_check_extra_seconds: float = Field(default=30.0, ge=0, alias="HEALTH_CHECK_EXTRA_SECONDS")

    # Catalog source
    catalog_base_url: str = Field(
        default="https://api.escuelajs.co/api/v1",
        alias="CATALOG_BASE_URL"
    )
    catalog_ping_url: Optional[str] = Field(default=None, alias="CATALOG_PING_URL")
    catalog_timeout_seconds: float = Field(default=30.0, gt=0, alias="CATALOG_TIMEOUT_SECONDS")

    # Sync settings
    sync_page_size: int = Field(default=10, ge=1, alias="SYNC_PAGE_SIZE")  # Source limit per request
    sync_target_count: int = Field(default=150, ge=0, alias="SYNC_TARGET_COUNT")
    sync_batch_delay_seconds: float = Field(default=10.0, ge=0, alias="SYNC_BATCH_DELAY_SECONDS")

    # Logging
    log_level: str = Field(default="INFO", alias="API_LOG_LEVEL")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> List[str]:
        """Parse CORS origins from JSON string or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # Fall back to comma-separated list
                return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("startup_mode", mode="before")
    @classmethod
    def parse_startup_mode(cls, v: Any) -> Any:
        """Accept mode names case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env file
        env_prefix="",  # No prefix for environment variables
        validate_default=True,
        populate_by_name=True  # Allow using both field name and alias for env vars
    )


# Global settings instance
_settings: Optional[APISettings] = None


def get_settings() -> APISettings:
    """Get global API settings (singleton)."""
    global _settings
    if _settings is None:
        _settings = APISettings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
