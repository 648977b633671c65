"""
Shared configuration management for the Visibility Logic service.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VISIBILITY_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Persistence
    store_backend: str = Field(default="file", description="memory, file or redis")
    store_path: str = Field(default="visibility-data.json")
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_namespace: str = Field(default="visibility")

    # Migrations
    current_version: str = Field(default="1.3.0", description="Installed schema version")
    version_option: str = Field(default="visibility_db_version")
    lock_ttl_seconds: int = Field(default=600)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and reject ones logging does not know."""
        level = v.strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "visibility"

    def __init__(self, service_name: str = "visibility", **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str = "visibility", **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
