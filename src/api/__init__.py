"""HTTP API layer built on FastAPI.

Key components:
- **main**: Application factory and lifecycle management
- **middleware**: Favicon serving, request context, request logging and
  centralized error handling
- **schemas**: Standardized error response format
- **utils**: orjson-backed JSON responses
"""
