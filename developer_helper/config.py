"""
Configuration management for the developer helper modules.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HelperConfig(BaseSettings):
    """Settings read from ``DEVHELPER_*`` environment variables or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_prefix="DEVHELPER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    service_name: str = "developer-helper"
    log_level: str = "info"
    log_file: Optional[str] = None
    log_json: bool = True

    # Memory cache
    cache_capacity_limit: Optional[int] = Field(default=1024, gt=0)
    cache_compaction_fraction: float = Field(default=0.2, gt=0.0, le=1.0)
    cache_default_sliding_expiration: timedelta = timedelta(minutes=30)
    cache_default_absolute_expiration: timedelta = timedelta(hours=1)
    cache_expiration_scan_frequency: timedelta = timedelta(minutes=5)

    # HTTP client
    http_timeout_seconds: float = Field(default=30.0, gt=0.0)
    http_retry_attempts: int = Field(default=3, ge=0)
    http_retry_base_delay: float = Field(default=2.0, ge=0.0)
    http_failure_threshold: int = Field(default=5, gt=0)
    http_recovery_timeout: float = Field(default=30.0, ge=0.0)

    # Security
    jwt_issuer: str = "DeveloperHelper"
    jwt_audience: str = "DeveloperHelper"
    jwt_default_lifetime: timedelta = timedelta(hours=1)
    password_hash_iterations: int = Field(default=100_000, gt=0)

    # Secrets
    master_key: Optional[str] = None
    secrets_file: str = "secrets.json"


@lru_cache(maxsize=1)
def get_config() -> HelperConfig:
    """Get the process-wide configuration."""
    return HelperConfig()


def reset_config() -> None:
    """Drop the cached configuration so the next ``get_config`` re-reads the environment."""
    get_config.cache_clear()
