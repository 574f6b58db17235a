"""Fixtures for API middleware tests."""

from collections.abc import Callable
from typing import TypeAlias, cast

import pytest
from pytest_mock import MockerFixture, MockType
from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.api.middleware.favicon import FaviconMiddleware
from src.core.favicon import IconStore

RequestFactory: TypeAlias = Callable[..., Request]


@pytest.fixture
def make_request() -> RequestFactory:
    """Factory building real Starlette requests from an ASGI scope.

    Returns:
        RequestFactory: Callable taking path, method and headers.
    """

    def _make_request(
        path: str = "/favicon.ico",
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> Request:
        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "root_path": "",
            "scheme": "http",
            "query_string": b"",
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
            "client": ("127.0.0.1", 50000),
            "server": ("testserver", 80),
        }
        return Request(scope)

    return _make_request


@pytest.fixture
def downstream_response() -> Response:
    """Response returned by the next handler in the chain."""
    return Response(content=b"downstream", status_code=200)


@pytest.fixture
def call_next(mocker: MockerFixture, downstream_response: Response) -> MockType:
    """Mock RequestResponseEndpoint returning the downstream response."""
    mock = mocker.AsyncMock(spec=RequestResponseEndpoint)
    mock.return_value = downstream_response
    return cast("MockType", mock)


@pytest.fixture
def favicon_middleware(mocker: MockerFixture, icon_store: IconStore) -> FaviconMiddleware:
    """FaviconMiddleware wrapping a mock app.

    Args:
        mocker: Pytest mocker fixture.
        icon_store: Store reading the test icon.

    Returns:
        FaviconMiddleware: Middleware under test.
    """
    return FaviconMiddleware(mocker.Mock(), store=icon_store)
