"""Shared fixtures for integration tests.

Every test gets a fresh application built from explicit settings and an
``IconStore`` pointing at a temporary icon file, so cached icon bytes never
leak between tests.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from loguru import logger

from src.api.main import create_app
from src.core.config import FaviconConfig, Settings, get_settings
from src.core.context import RequestContext
from src.core.favicon import IconStore
from src.core.logging import _state

ICON_BYTES = bytes.fromhex("000001000100101000000100200068040000160000000000")

ClientFactoryType = Callable[..., Awaitable[AsyncClient]]


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Clear the settings cache before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Reset correlation and request IDs around each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None]:
    """Keep app creation from adding stdout handlers during tests.

    Handlers are removed and logging is marked as configured, so
    ``create_app`` skips ``setup_logging``.
    """
    logger.remove()
    _state.configured = True
    yield
    logger.remove()


@pytest.fixture
def icon_bytes() -> bytes:
    """Bytes of the test icon."""
    return ICON_BYTES


@pytest.fixture
def icon_dir(tmp_path: Path, icon_bytes: bytes) -> Path:
    """Directory containing ``public/favicon.ico``."""
    public = tmp_path / "public"
    public.mkdir()
    (public / "favicon.ico").write_bytes(icon_bytes)
    return tmp_path


@pytest.fixture
def settings(icon_dir: Path) -> Settings:
    """Settings serving the test icon with debug mode off."""
    return Settings(debug=False, favicon_config=FaviconConfig(base_dir=str(icon_dir)))


@pytest.fixture
def icon_store(settings: Settings) -> IconStore:
    """Icon store shared by the app under test."""
    return IconStore(settings.favicon_config)


@pytest.fixture
def app(settings: Settings, icon_store: IconStore) -> FastAPI:
    """Application wired with the test settings and icon store."""
    application = create_app(settings, icon_store)
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client talking to the test application.

    Application exceptions are not re-raised, so tests see the 500 response
    produced by the error handlers.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def client_factory() -> AsyncGenerator[ClientFactoryType]:
    """Factory for clients built from custom settings and icon stores.

    Usage:
        async def test_something(client_factory):
            client = await client_factory(Settings(...), IconStore(...))
    """
    clients: list[AsyncClient] = []

    async def _create_client(
        app_settings: Settings, store: IconStore | None = None
    ) -> AsyncClient:
        application = create_app(app_settings, store)
        application.dependency_overrides[get_settings] = lambda: app_settings
        transport = ASGITransport(app=application, raise_app_exceptions=False)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _create_client

    for client in clients:
        await client.aclose()
