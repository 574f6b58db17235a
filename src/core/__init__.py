"""Core components shared across the application.

- **config**: Pydantic settings with environment overrides
- **context**: Correlation and request IDs in contextvars
- **exceptions**: Structured exception hierarchy with error codes
- **favicon**: Icon store with lazily loaded, memoized icon bytes
- **http_caching**: Entity tags and conditional-request freshness
- **logging**: Loguru setup with console, JSON and GCP formatters
- **observability**: OpenTelemetry tracing
"""
