"""Centralized configuration management with environment-aware defaults.

This module implements the configuration system using Pydantic Settings,
providing type-safe configuration with validation and environment variable
support.

Features:
- **Type safety**: All configuration values are validated and typed
- **Environment variables**: Supports .env files and environment overrides
- **Nested configuration**: Uses __ delimiter for nested sections, e.g.
  ``FAVICON_CONFIG__MAX_CACHE_DAYS=30``
- **Auto-detection**: Detects cloud environments to pick log/trace formats
- **Caching**: Configuration is cached for performance

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in project root
3. Default values in model definitions
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.constants import DEFAULT_ICON_PATH, DEFAULT_MAX_CACHE_DAYS


class LogConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json", "gcp"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    excluded_paths: list[str] = Field(
        default_factory=lambda: ["/health"],
        description="Paths to exclude from request logging",
    )
    slow_request_threshold_ms: int = Field(
        default=1000,
        gt=0,
        description="Threshold for slow request warnings (milliseconds)",
    )


class ObservabilityConfig(BaseModel):
    """OpenTelemetry tracing configuration."""

    enable_tracing: bool = Field(
        default=True,
        description="Enable OpenTelemetry tracing",
    )
    exporter_type: Literal["console", "gcp", "otlp", "none"] = Field(
        default="console",
        description="Trace exporter type. Defaults to console for development.",
    )
    exporter_endpoint: str | None = Field(
        default=None,
        description="OTLP exporter endpoint",
    )
    gcp_project_id: str | None = Field(
        default=None,
        description="GCP project ID (only for GCP exporter)",
    )
    trace_sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Trace sampling rate (0.0 to 1.0)",
    )

    @field_validator("exporter_endpoint", "gcp_project_id", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


class FaviconConfig(BaseModel):
    """Favicon serving configuration."""

    icon_path: str = Field(
        default=DEFAULT_ICON_PATH,
        description="Path of the icon file, relative to base_dir",
    )
    max_cache_days: int = Field(
        default=DEFAULT_MAX_CACHE_DAYS,
        ge=0,
        description="Number of days clients may cache the icon",
    )
    base_dir: str = Field(
        default=".",
        description="Directory the icon path is resolved against",
    )
    preload: bool = Field(
        default=False,
        description="Read the icon into memory during application startup",
    )


class Settings(BaseSettings):
    """Main settings class for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
    )

    # Application settings
    app_name: str = Field(default="Favicon Service", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(default=True, description="Debug mode flag")

    # API settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=8000, description="API port")
    docs_url: str | None = Field(default="/docs", description="Swagger UI URL")
    redoc_url: str | None = Field(default="/redoc", description="ReDoc URL")
    openapi_url: str | None = Field(
        default="/openapi.json", description="OpenAPI schema URL"
    )

    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )
    observability_config: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig, description="Observability configuration"
    )
    favicon_config: FaviconConfig = Field(
        default_factory=FaviconConfig, description="Favicon configuration"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

        if self.environment == "production":
            if self.observability_config.exporter_type == "console":
                self.observability_config.exporter_type = self._detect_exporter()
            if self.observability_config.trace_sample_rate == 1.0:
                self.observability_config.trace_sample_rate = 0.1

    def _detect_formatter(self) -> Literal["console", "json", "gcp"]:
        """Auto-detect log formatter based on environment."""
        if os.getenv("K_SERVICE"):  # Cloud Run
            return "gcp"
        if self.environment == "development":
            return "console"
        return "json"

    def _detect_exporter(self) -> Literal["console", "gcp", "otlp", "none"]:
        """Auto-detect trace exporter based on environment."""
        if os.getenv("K_SERVICE"):  # Cloud Run
            return "gcp"
        if self.environment == "development":
            return "console"
        return "otlp"

    @field_validator("docs_url", "redoc_url", "openapi_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        _ = cls
        if v == "":
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
