"""
Shared configuration management for the Employee Directory Access Layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="DIRECTORY_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Upstream employee directory
    directory_base_url: str = Field(default="http://localhost:8112/api/v1")
    upstream_connect_timeout: float = Field(default=10.0, gt=0)
    upstream_read_timeout: float = Field(default=10.0, gt=0)
    upstream_write_timeout: float = Field(default=10.0, gt=0)
    upstream_connect_retries: int = Field(default=1, ge=0)

    # Snapshot cache
    snapshot_ttl_seconds: float = Field(default=600.0, gt=0)
    error_snapshot_ttl_seconds: Optional[float] = Field(default=None, gt=0)

    # Analytics
    top_earners_limit: int = Field(default=10, ge=0)

    # Rate limiting
    rate_limit_for_period: int = Field(default=50, gt=0)
    rate_limit_refresh_seconds: float = Field(default=1.0, gt=0)
    rate_limit_timeout_seconds: float = Field(default=0.5, ge=0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
