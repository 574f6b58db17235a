"""Standardized error response schemas.

Every error leaving the API, whether raised by the application or by the
framework, is serialized as an ``ErrorResponse`` so clients can rely on a
single shape.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ServiceInfo(BaseModel):
    """Identifies the service instance that produced an error."""

    name: str = Field(..., description="Name of the service")
    version: str = Field(..., description="Version of the service")
    environment: str = Field(
        ...,
        description="Environment where the service is running",
        examples=["development", "staging", "production"],
    )


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    error_code: str = Field(
        ...,
        description="Unique error code identifying the error type",
        examples=["ICON_UNAVAILABLE", "NOT_FOUND", "INTERNAL_ERROR"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Icon file could not be read: ./public/favicon.ico"],
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details",
        examples=[{"icon_path": "./public/favicon.ico"}],
    )
    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for tracing and debugging",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )
    request_id: str | None = Field(
        default=None,
        description="Unique request identifier",
        examples=["req-660e8400-e29b-41d4-a716-446655440000"],
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the error occurred (with timezone)",
    )
    severity: str | None = Field(
        default=None,
        description="Error severity level",
        examples=["LOW", "HIGH", "CRITICAL"],
    )
    service_info: ServiceInfo | None = Field(
        default=None,
        description="Information about the service that generated the error",
    )
    debug_info: dict[str, Any] | None = Field(
        default=None,
        description="Debug information (only populated in development environments)",
    )
