"""
Shared configuration management for the Player Aggregator.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="PLAYERS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Cache store
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_ttl_seconds: Optional[int] = Field(default=None, ge=1)

    # Steam Web API
    steam_api_url: str = Field(default="https://api.steampowered.com")
    steam_api_key: str = Field(default="")
    steam_timeout_seconds: float = Field(default=10.0, gt=0)
    library_concurrency: int = Field(default=10, ge=1)

    # Request limits
    max_batch_size: int = Field(default=500, ge=1)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
