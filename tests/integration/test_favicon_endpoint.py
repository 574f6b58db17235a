"""Integration tests for serving the favicon through the full application."""

from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
from httpx import AsyncClient

from src.core.config import FaviconConfig, Settings
from src.core.favicon import IconStore
from src.core.http_caching import generate_etag

ClientFactoryType = Callable[..., Awaitable[AsyncClient]]


@pytest.mark.integration
class TestFaviconEndpoint:
    """Test the favicon behind the full middleware stack."""

    async def test_get_favicon(self, client: AsyncClient, icon_bytes: bytes) -> None:
        """Test GET /favicon.ico returns the icon with caching headers."""
        response = await client.get("/favicon.ico")

        assert response.status_code == 200
        assert response.content == icon_bytes
        assert response.headers["content-type"] == "image/x-icon"
        assert response.headers["content-length"] == str(len(icon_bytes))
        assert response.headers["cache-control"] == "public, max-age=31536000"
        assert response.headers["etag"] == generate_etag(icon_bytes)

    async def test_head_favicon(self, client: AsyncClient, icon_bytes: bytes) -> None:
        """Test HEAD /favicon.ico carries the same headers as GET."""
        response = await client.head("/favicon.ico")

        assert response.status_code == 200
        assert response.headers["etag"] == generate_etag(icon_bytes)
        assert response.headers["content-type"] == "image/x-icon"

    async def test_conditional_get(self, client: AsyncClient) -> None:
        """Test replaying the etag yields 304 Not Modified."""
        first = await client.get("/favicon.ico")

        second = await client.get(
            "/favicon.ico", headers={"If-None-Match": first.headers["etag"]}
        )

        assert second.status_code == 304
        assert second.content == b""
        assert second.headers["etag"] == first.headers["etag"]

    async def test_wildcard_if_none_match(self, client: AsyncClient) -> None:
        """Test If-None-Match: * matches the current icon."""
        response = await client.get("/favicon.ico", headers={"If-None-Match": "*"})

        assert response.status_code == 304

    async def test_options(self, client: AsyncClient) -> None:
        """Test OPTIONS /favicon.ico advertises the allowed methods."""
        response = await client.options("/favicon.ico")

        assert response.status_code == 200
        assert response.headers["allow"] == "GET, HEAD, OPTIONS"
        assert response.headers["content-length"] == "0"
        assert response.content == b""

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
    async def test_method_not_allowed(self, client: AsyncClient, method: str) -> None:
        """Test other methods get 405 with the Allow header."""
        response = await client.request(method, "/favicon.ico")

        assert response.status_code == 405
        assert response.headers["allow"] == "GET, HEAD, OPTIONS"
        assert response.content == b""

    async def test_configured_max_age(
        self, client_factory: ClientFactoryType, icon_dir: Path
    ) -> None:
        """Test a one-day cache lifetime and a conditional replay."""
        settings = Settings(
            debug=False,
            favicon_config=FaviconConfig(base_dir=str(icon_dir), max_cache_days=1),
        )
        client = await client_factory(settings)

        first = await client.get("/favicon.ico")
        replay = await client.get(
            "/favicon.ico", headers={"If-None-Match": first.headers["etag"]}
        )

        assert first.headers["cache-control"] == "public, max-age=86400"
        assert replay.status_code == 304
        assert replay.headers["cache-control"] == "public, max-age=86400"

    async def test_icon_cached_after_first_request(
        self, client: AsyncClient, icon_store: IconStore, icon_dir: Path
    ) -> None:
        """Test later requests are served from memory after the file is gone."""
        await client.get("/favicon.ico")
        (icon_dir / "public" / "favicon.ico").unlink()

        response = await client.get("/favicon.ico")

        assert response.status_code == 200
        assert icon_store.is_loaded is True

    async def test_missing_icon_returns_error_response(
        self, client_factory: ClientFactoryType, tmp_path: Path
    ) -> None:
        """Test an unreadable icon produces a 500 error response."""
        settings = Settings(
            debug=False, favicon_config=FaviconConfig(base_dir=str(tmp_path))
        )
        client = await client_factory(settings)

        response = await client.get("/favicon.ico")

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "ICON_UNAVAILABLE"
        assert body["severity"] == "HIGH"
        assert body["details"]["icon_path"].endswith("favicon.ico")

    async def test_other_routes_unaffected(self, client: AsyncClient) -> None:
        """Test requests for other paths reach the application routes."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_missing_icon_in_debug_mode_returns_traceback(
        self, client_factory: ClientFactoryType, tmp_path: Path
    ) -> None:
        """Test debug mode answers an unreadable icon with Starlette's traceback."""
        settings = Settings(
            debug=True, favicon_config=FaviconConfig(base_dir=str(tmp_path))
        )
        client = await client_factory(settings)

        response = await client.get("/favicon.ico", headers={"Accept": "text/plain"})

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/plain")
        assert "IconUnavailableError" in response.text
        assert "ICON_UNAVAILABLE" in response.text
