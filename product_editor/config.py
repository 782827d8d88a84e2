"""Application configuration using Pydantic Settings.

Reads configuration from environment variables with sensible defaults.
Credentials (API token, tenant) should be provided via environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Editor settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application
    # =========================================================================
    environment: Literal["prod", "staging", "dev"] = Field(
        default="dev",
        description="Environment name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # =========================================================================
    # Catalog Backend
    # =========================================================================
    backend_url: str = Field(
        default="http://localhost:8080/api",
        description="Catalog backend base URL",
    )
    backend_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Request timeout in seconds for catalog calls",
    )
    api_token: str = Field(
        default="",
        description="Bearer token sent as Authorization header (empty = none)",
    )
    tenant_id: str = Field(
        default="",
        description="Tenant identifier sent as X-Tenant-ID (empty = none)",
    )
    countries_url: str = Field(
        default="https://restcountries.com/v3.1/all?fields=name,cca2",
        description="Public endpoint listing countries for the origin picker",
    )

    # =========================================================================
    # Catalog Defaults
    # =========================================================================
    catalog_config_path: str = Field(
        default="",
        description="Path to catalog YAML (empty = packaged catalog.yaml)",
    )
    default_currency: str = Field(
        default="USD",
        description="Currency used when the tenant context does not provide one",
    )
    default_weight_unit: str = Field(
        default="lb",
        description="Weight unit selected for new drafts",
    )
    default_dimension_unit: str = Field(
        default="inch",
        description="Preferred dimension unit for new drafts",
    )

    # =========================================================================
    # Image Previews
    # =========================================================================
    preview_dir: str = Field(
        default="",
        description="Directory for preview thumbnails (empty = system temp dir)",
    )
    preview_thumbnail_size: int = Field(
        default=256,
        ge=16,
        le=2048,
        description="Max edge in pixels of staged image previews",
    )
    preview_quality: int = Field(
        default=85,
        ge=1,
        le=100,
        description="JPEG quality for preview thumbnails",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=True,
        description="Output logs as JSON",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance (cached)
    """
    return Settings()


settings = get_settings()
