"""Favicon middleware serving ``/favicon.ico`` with conditional-GET caching.

Request flow for ``/favicon.ico``:

1. Methods other than GET and HEAD are answered with an empty body and an
   ``Allow`` header: ``200`` for OPTIONS, ``405`` for everything else.
2. The icon bytes are taken from the ``IconStore`` (read from disk once).
3. ``etag``, ``cache-control`` and ``content-length`` are computed.
4. If the request's validators match, ``304 Not Modified`` is returned.
5. Otherwise the icon is sent with ``200`` and ``image/x-icon``.

Every other path is passed through untouched. Errors reading the icon file
are not handled here; they propagate to the application's error handling.
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.api.constants import (
    ALLOWED_METHODS_HEADER,
    FAVICON_CONTENT_TYPE,
    FAVICON_METHODS,
    FAVICON_PATH,
)
from src.core.favicon import IconStore
from src.core.http_caching import is_fresh
from src.core.observability import add_span_attributes


class FaviconMiddleware(BaseHTTPMiddleware):
    """Serve the favicon from memory with etag and cache-control headers.

    Args:
        app: The ASGI application to wrap.
        store: Icon store holding the configuration and cached bytes.
    """

    def __init__(self, app: ASGIApp, *, store: IconStore) -> None:
        super().__init__(app)
        self.store = store

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Answer favicon requests and pass everything else on.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The favicon response, or the downstream response.
        """
        if request.url.path != FAVICON_PATH:
            return await call_next(request)

        # ASGI methods are uppercase; the checks below work on lowercase names
        method = request.method.lower()
        if method not in FAVICON_METHODS:
            return self._reject_method(method)

        return await self._send_icon(request)

    @staticmethod
    def _reject_method(method: str) -> Response:
        status_code = 200 if method == "options" else 405
        add_span_attributes(favicon_status=status_code)
        logger.debug("Favicon request with method {} rejected", method.upper())
        return Response(
            content=b"",
            status_code=status_code,
            headers={"content-length": "0", "allow": ALLOWED_METHODS_HEADER},
        )

    async def _send_icon(self, request: Request) -> Response:
        cache_hit = self.store.is_loaded
        icon = await self.store.get_icon()
        headers = self.store.build_headers(icon)

        if is_fresh(request.headers, {"etag": headers.etag}):
            add_span_attributes(favicon_status=304, favicon_cache_hit=cache_hit)
            logger.debug("Favicon not modified", etag=headers.etag)
            return Response(
                status_code=304,
                headers={"etag": headers.etag, "cache-control": headers.cache_control},
            )

        add_span_attributes(favicon_status=200, favicon_cache_hit=cache_hit)
        logger.debug("Favicon served", cache_hit=cache_hit)
        return Response(
            content=icon,
            status_code=200,
            headers=headers.as_dict(),
            media_type=FAVICON_CONTENT_TYPE,
        )
