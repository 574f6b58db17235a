"""API-related constants."""

# HTTP Status Codes
HTTP_500_INTERNAL_SERVER_ERROR = 500

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Favicon route
FAVICON_PATH = "/favicon.ico"
FAVICON_CONTENT_TYPE = "image/x-icon"
FAVICON_METHODS = frozenset({"get", "head"})
ALLOWED_METHODS_HEADER = "GET, HEAD, OPTIONS"
