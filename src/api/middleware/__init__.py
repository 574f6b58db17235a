"""Middleware for the favicon service.

- **FaviconMiddleware**: Serves ``/favicon.ico`` from memory with conditional GET
- **RequestContextMiddleware**: Manages correlation IDs
- **RequestLoggingMiddleware**: Logs requests with timing
- **error_handler**: Exception handlers producing consistent error responses

Execution order for an incoming request: request context, request logging,
favicon, then the routes.
"""
