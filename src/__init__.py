"""Favicon service - serves ``/favicon.ico`` with HTTP caching semantics.

Architecture Overview:
- **API Layer**: FastAPI application, middleware and error handling
- **Core Layer**: Configuration, icon store, HTTP validators, logging and tracing

The icon is read from disk once per process and served from memory with
``ETag`` and ``Cache-Control`` headers, answering conditional requests with
``304 Not Modified``.
"""
