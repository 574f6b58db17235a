"""Distributed tracing using OpenTelemetry with pluggable exporters.

Supported exporters:
- **console**: spans are written through Loguru (local development)
- **otlp**: any OTLP collector (Jaeger, Tempo, AWS X-Ray via ADOT)
- **gcp**: Google Cloud Trace, when the optional exporter is installed
- **none**: tracing provider is set up but nothing is exported
"""

from __future__ import annotations

import importlib
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Final

from loguru import logger
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from src.core.context import RequestContext

if TYPE_CHECKING:
    from collections.abc import Generator, Sequence

    from fastapi import FastAPI

    from src.core.config import Settings

SERVICE_NAME_KEY: Final[str] = "service.name"
SERVICE_VERSION_KEY: Final[str] = "service.version"
ENVIRONMENT_KEY: Final[str] = "deployment.environment"
EXCLUDED_URLS: Final[str] = "/health,/docs,/redoc,/openapi.json"
NOISY_SPAN_NAMES: Final[frozenset[str]] = frozenset({"http send", "http receive"})


class LoguruSpanExporter(SpanExporter):
    """Span exporter that writes finished spans through the Loguru logger."""

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """Log each finished span as a structured debug record."""
        for span in spans:
            span_context = span.get_span_context()
            if not span_context or span.name in NOISY_SPAN_NAMES:
                continue

            attributes = dict(span.attributes or {})
            duration_ms = None
            if span.end_time and span.start_time:
                duration_ms = (span.end_time - span.start_time) // 1_000_000

            logger.bind(
                trace_id=f"0x{span_context.trace_id:032x}",
                span_id=f"0x{span_context.span_id:016x}",
                correlation_id=attributes.get(
                    "correlation_id", RequestContext.get_correlation_id()
                ),
                span_name=span.name,
                duration_ms=duration_ms,
                attributes=attributes,
                status=span.status.status_code.name,
            ).debug("Trace span completed: {}", span.name)

        return SpanExportResult.SUCCESS


def get_span_exporter(settings: Settings) -> SpanExporter | None:
    """Get the span exporter selected by configuration.

    Args:
        settings: Application settings.

    Returns:
        SpanExporter | None: Configured exporter or None if disabled.
    """
    exporter_type = settings.observability_config.exporter_type.lower()

    if exporter_type == "console":
        return LoguruSpanExporter()

    if exporter_type == "gcp":
        return _get_gcp_exporter(settings)

    if exporter_type == "otlp":
        endpoint = (
            settings.observability_config.exporter_endpoint or "http://localhost:4317"
        )
        logger.info("Using OTLP exporter at {}", endpoint)
        return OTLPSpanExporter(
            endpoint=endpoint,
            insecure=settings.environment == "development",
        )

    if exporter_type == "none":
        logger.info("Span export explicitly disabled")
        return None

    logger.warning("Unknown exporter type: {}, disabling span export", exporter_type)
    return None


def _get_gcp_exporter(settings: Settings) -> SpanExporter | None:
    """Get the GCP Cloud Trace exporter if its package is installed."""
    try:
        module = importlib.import_module("opentelemetry.exporter.cloud_trace")
    except ImportError:
        logger.error(
            "GCP exporter requested but opentelemetry-exporter-gcp-trace "
            "is not installed"
        )
        return None

    project_id = settings.observability_config.gcp_project_id or os.getenv(
        "GOOGLE_CLOUD_PROJECT"
    )
    if not project_id:
        logger.warning("GCP project ID not configured, disabling span export")
        return None

    logger.info("Using GCP Cloud Trace exporter for project {}", project_id)
    exporter: SpanExporter = module.CloudTraceSpanExporter(project_id=project_id)
    return exporter


def setup_tracing(settings: Settings) -> None:
    """Install the global tracer provider.

    Args:
        settings: Application settings.
    """
    if not settings.observability_config.enable_tracing:
        logger.info("Tracing disabled by configuration")
        return

    resource = Resource.create(
        {
            SERVICE_NAME_KEY: settings.app_name,
            SERVICE_VERSION_KEY: settings.app_version,
            ENVIRONMENT_KEY: settings.environment,
        }
    )
    tracer_provider = TracerProvider(
        resource=resource,
        sampler=TraceIdRatioBased(settings.observability_config.trace_sample_rate),
    )

    exporter = get_span_exporter(settings)
    if exporter:
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(tracer_provider)

    logger.info(
        "Tracing configured",
        exporter_type=settings.observability_config.exporter_type,
        sample_rate=settings.observability_config.trace_sample_rate,
    )


def instrument_app(app: FastAPI, settings: Settings) -> None:
    """Instrument a FastAPI application for tracing.

    Args:
        app: FastAPI application to instrument.
        settings: Application settings.
    """
    if not settings.observability_config.enable_tracing:
        return

    FastAPIInstrumentor.instrument_app(
        app,
        excluded_urls=EXCLUDED_URLS,
        server_request_hook=add_correlation_id_to_span,
    )
    logger.info("Application instrumented for tracing")


def add_correlation_id_to_span(span: trace.Span, scope: dict[str, Any]) -> None:
    """Copy the correlation and request IDs from the request headers onto the span.

    The hook runs before the request context middleware, so the IDs are taken
    from the ASGI headers rather than from ``RequestContext``.

    Args:
        span: The current span.
        scope: ASGI scope of the request.
    """
    headers = dict(scope.get("headers", []))
    if correlation_id := headers.get(b"x-correlation-id", b"").decode("utf-8"):
        span.set_attribute("correlation_id", correlation_id)

    if request_id := headers.get(b"x-request-id", b"").decode("utf-8"):
        span.set_attribute("request_id", request_id)


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span, if one is recording.

    Args:
        **attributes: Key-value pairs to add as span attributes.
    """
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


@contextmanager
def trace_operation(
    name: str, **attributes: str | int | float | bool
) -> Generator[trace.Span]:
    """Trace a block of work as a child span.

    Args:
        name: Operation name for the span.
        **attributes: Initial attributes for the span.

    Yields:
        trace.Span: The span covering the block.

    Example:
        >>> with trace_operation("favicon.read", icon_path="public/favicon.ico"):
        ...     icon = await anyio.Path(path).read_bytes()
    """
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(name) as span:
        for key, value in attributes.items():
            span.set_attribute(key, value)
        if correlation_id := RequestContext.get_correlation_id():
            span.set_attribute("correlation_id", correlation_id)
        yield span
