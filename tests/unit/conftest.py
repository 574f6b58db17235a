"""Shared fixtures for unit tests."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from src.core.config import FaviconConfig, get_settings
from src.core.context import RequestContext
from src.core.favicon import IconStore

# Minimal ICO header followed by a few bytes of image data
ICON_BYTES = bytes.fromhex("000001000100101000000100200068040000160000000000")


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
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
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove app-specific environment variables that could leak into Settings.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        pytest.MonkeyPatch: The monkeypatch instance for env manipulation.
    """
    env_prefixes = ("APP_", "API_", "FAVICON_CONFIG__", "PORT", "K_SERVICE")
    for key in list(os.environ):
        if key.startswith(env_prefixes):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def icon_bytes() -> bytes:
    """Bytes of the test icon."""
    return ICON_BYTES


@pytest.fixture
def icon_dir(tmp_path: Path, icon_bytes: bytes) -> Path:
    """Directory containing ``public/favicon.ico``.

    Args:
        tmp_path: Pytest tmp_path fixture.
        icon_bytes: Test icon contents.

    Returns:
        Path: Base directory for the icon store.
    """
    public = tmp_path / "public"
    public.mkdir()
    (public / "favicon.ico").write_bytes(icon_bytes)
    return tmp_path


@pytest.fixture
def icon_store(icon_dir: Path) -> IconStore:
    """Icon store reading the test icon from a temporary directory."""
    return IconStore(FaviconConfig(base_dir=str(icon_dir)))
