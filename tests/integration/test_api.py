"""Integration tests for the service endpoints and cross-cutting middleware."""

from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from src.api.main import create_app, lifespan
from src.core.config import FaviconConfig, Settings
from src.core.favicon import IconStore


@pytest.mark.integration
class TestAPIEndpoints:
    """Test the health and info endpoints."""

    async def test_health_reports_icon_cache(self, client: AsyncClient) -> None:
        """Test /health shows whether the icon is held in memory."""
        before = await client.get("/health")
        await client.get("/favicon.ico")
        after = await client.get("/health")

        assert before.json() == {"status": "healthy", "icon_cached": False}
        assert after.json() == {"status": "healthy", "icon_cached": True}

    async def test_info(self, client: AsyncClient) -> None:
        """Test /info reports the application and favicon settings."""
        response = await client.get("/info")

        assert response.status_code == 200
        data = response.json()
        assert data["app_name"] == "Favicon Service"
        assert data["debug"] is False
        assert data["icon_path"] == "public/favicon.ico"
        assert data["max_age_seconds"] == 31536000

    async def test_unknown_route(self, client: AsyncClient) -> None:
        """Test unknown routes produce a NOT_FOUND error response."""
        response = await client.get("/does-not-exist")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "NOT_FOUND"
        assert data["severity"] == "LOW"
        assert data["service_info"]["name"] == "Favicon Service"


@pytest.mark.integration
class TestRequestMiddleware:
    """Test correlation and request ID propagation."""

    async def test_correlation_id_echoed(self, client: AsyncClient) -> None:
        """Test a supplied correlation ID is returned on the response."""
        response = await client.get(
            "/favicon.ico", headers={"X-Correlation-ID": "test-correlation"}
        )

        assert response.headers["X-Correlation-ID"] == "test-correlation"

    async def test_correlation_id_generated(self, client: AsyncClient) -> None:
        """Test a correlation ID is generated when none is supplied."""
        response = await client.get("/favicon.ico")

        assert len(response.headers["X-Correlation-ID"]) == 36

    async def test_request_id_set(self, client: AsyncClient) -> None:
        """Test favicon responses carry a request ID."""
        response = await client.get("/favicon.ico", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    async def test_health_not_logged_with_request_id(self, client: AsyncClient) -> None:
        """Test excluded paths skip request logging."""
        response = await client.get("/health")

        assert "X-Request-ID" not in response.headers

    async def test_error_response_carries_correlation_id(
        self, client: AsyncClient
    ) -> None:
        """Test error bodies include the request's correlation ID."""
        response = await client.get(
            "/does-not-exist", headers={"X-Correlation-ID": "corr-404"}
        )

        assert response.json()["correlation_id"] == "corr-404"


@pytest.mark.integration
class TestLifespan:
    """Test icon preloading at startup."""

    @staticmethod
    def _build_app(base_dir: Path) -> tuple[FastAPI, IconStore]:
        settings = Settings(
            debug=False,
            favicon_config=FaviconConfig(base_dir=str(base_dir), preload=True),
        )
        store = IconStore(settings.favicon_config)
        return create_app(settings, store), store

    async def test_preload_reads_icon(self, icon_dir: Path) -> None:
        """Test the icon is cached before the first request."""
        app, store = self._build_app(icon_dir)

        async with lifespan(app):
            assert store.is_loaded is True

    async def test_preload_failure_aborts_startup(self, tmp_path: Path) -> None:
        """Test a missing icon stops the application from starting."""
        app, store = self._build_app(tmp_path)

        with pytest.raises(RuntimeError, match="Icon preload failed"):
            async with lifespan(app):
                pass

        assert store.is_loaded is False

    async def test_no_preload_by_default(self, app: FastAPI, icon_store: IconStore) -> None:
        """Test the icon stays on disk until requested."""
        async with lifespan(app):
            assert icon_store.is_loaded is False
