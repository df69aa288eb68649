"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
from pathlib import Path


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Storefront Template Studio", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=5000, description="Server port")

    # Record Store Configuration
    store_backend: str = Field(default="file", description="Record store backend: file, redis")
    storage_path: Path = Field(default=Path("./storage"), description="Storage directory path")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    redis_max_connections: int = Field(default=20, description="Redis connection pool size")
    redis_key_prefix: str = Field(default="storefront", description="Prefix for Redis keys")

    # Template Configuration
    templates_path: Optional[Path] = Field(
        default=None, description="Override directory for template markup files"
    )
    default_template_key: str = Field(
        default="bladesmith", description="Template used when a store key is unknown"
    )

    # Asset Configuration
    asset_base_url: str = Field(
        default="http://localhost:5000", description="Base URL for storage-relative asset paths"
    )
    placeholder_image: str = Field(default="/imgplc.jpg", description="Product image fallback")

    # Rendering Configuration
    currency_symbol: str = Field(default="₱", description="Currency symbol for product prices")
    description_preview_length: int = Field(
        default=100, description="Product description preview length in characters"
    )
    replay_element_states: bool = Field(
        default=False, description="Apply saved element states in the static renderer"
    )
    copyright_year: int = Field(default=2025, description="Year in the standardized copyright")
    copyright_suffix: str = Field(
        default="Structura Team from Faith Colleges",
        description="Trailing text of the standardized copyright notice",
    )

    # Editor Configuration
    snap_threshold: float = Field(default=8.0, description="Center snap distance in pixels")
    nudge_step: float = Field(default=1.0, description="Arrow key nudge in pixels")
    nudge_step_large: float = Field(default=10.0, description="Shift+arrow nudge in pixels")
    viewport_width: float = Field(default=1280.0, description="Default preview viewport width")
    viewport_height: float = Field(default=800.0, description="Default preview viewport height")

    # API Documentation Configuration
    enable_docs: bool = Field(default=True, description="Enable FastAPI docs endpoint")

    # Security Configuration
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed hosts for CORS")

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        """Validate record store backend."""
        allowed = {"file", "redis"}
        if v.lower() not in allowed:
            raise ValueError(f"Store backend must be one of: {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse allowed hosts from string or list."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @field_validator("storage_path")
    @classmethod
    def create_directories(cls, v: Path) -> Path:
        """Ensure directories exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="STOREFRONT_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
