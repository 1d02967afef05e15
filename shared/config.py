"""
Shared configuration management for the School Console.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CONSOLE_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # School backend
    backend_server_url: str = Field(default="http://localhost:8080")
    backend_timeout_seconds: float = Field(default=10.0, gt=0)
    backend_retry_attempts: int = Field(default=3, ge=1)
    backend_retry_base_delay: float = Field(default=0.5, ge=0)
    backend_failure_threshold: int = Field(default=5, ge=1)
    backend_recovery_timeout: float = Field(default=30.0, ge=0)

    # Response cache
    list_cache_ttl: int = Field(default=30, description="TTL for list and aggregate reads")
    detail_cache_ttl: int = Field(default=300, description="TTL for single-entity reads")

    # Sessions
    session_secret: str = Field(default="change-me-in-production")
    session_algorithm: str = Field(default="HS256")
    session_ttl_seconds: int = Field(default=8 * 60 * 60)
    session_cookie_name: str = Field(default="console_session")

    # Employee check-in site; check-in is refused while lat/lng are unset
    check_in_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    check_in_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    check_in_radius: float = Field(default=150.0, gt=0, description="Allowed distance in meters")

    # Branding
    school_name: str = Field(default="Dev Academy")
    school_tagline: str = Field(default="Empowering Education")
    school_logo_url: str = Field(default="/logo.svg")
    primary_color: str = Field(default="blue")
    secondary_color: str = Field(default="slate")


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
