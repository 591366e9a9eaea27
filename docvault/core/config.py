"""
Configuration management for DocVault.

This module centralizes environment-driven configuration using Pydantic's
`BaseSettings`. The composition root reads one `Settings` instance and hands
the relevant values to each component, so nothing below the container looks
at the environment directly.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docvault.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General application settings
    API_TITLE: str = "DocVault API"
    API_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|staging|production|test)$")
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # AWS credentials / endpoints
    AWS_REGION: Optional[str] = None
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_SESSION_TOKEN: Optional[str] = None
    AWS_ENDPOINT_URL: Optional[str] = None

    # Metadata table
    AWS_DOCUMENTS_TABLE_NAME: Optional[str] = None
    AWS_AUTO_CREATE_TABLE: Optional[bool] = None
    TABLE_READY_TIMEOUT_SECONDS: PositiveInt = 60

    # Object storage
    AWS_S3_BUCKET_NAME: Optional[str] = None
    AWS_S3_PUBLIC_URL_BASE: Optional[str] = None
    AWS_S3_FORCE_PUBLIC_READ: bool = False
    AWS_S3_THUMBNAIL_PREFIX: str = "thumbnails"
    PRESIGNED_URL_TTL_SECONDS: PositiveInt = 3600

    # Thumbnailing
    AWS_RESIZE_LAMBDA_FUNCTION_NAME: Optional[str] = None

    # Monitoring / tracing
    TRACING_ENABLED: bool = True
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_HEADERS: Optional[str] = None

    # Upload / listing limits
    MAX_UPLOAD_BYTES: PositiveInt = 10 * 1024 * 1024
    DEFAULT_PAGE_LIMIT: PositiveInt = 12

    @field_validator("ALLOWED_ORIGINS", mode="before")
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator(
        "AWS_DOCUMENTS_TABLE_NAME",
        "AWS_S3_BUCKET_NAME",
        "AWS_S3_PUBLIC_URL_BASE",
        "AWS_RESIZE_LAMBDA_FUNCTION_NAME",
        "AWS_ENDPOINT_URL",
        "OTEL_EXPORTER_OTLP_ENDPOINT",
        mode="before",
    )
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def auto_create_table(self) -> bool:
        """Auto-provisioning defaults to on everywhere except production."""

        if self.AWS_AUTO_CREATE_TABLE is not None:
            return self.AWS_AUTO_CREATE_TABLE
        return self.ENVIRONMENT != "production"

    @property
    def thumbnail_prefix(self) -> str:
        return self.AWS_S3_THUMBNAIL_PREFIX.strip("/") or "thumbnails"

    def require(self, name: str) -> str:
        """Return a required setting or fail with a `ConfigurationError` naming it."""

        value = getattr(self, name, None)
        if not value:
            raise ConfigurationError(f"{name} environment variable is not set.")
        return value


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()
