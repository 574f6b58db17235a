"""FastAPI application initialization and configuration module.

This module is the entry point of the favicon service. It handles:
- Application lifecycle (optional icon preload at startup)
- Middleware registration in the correct order
- Exception handler registration
- Health check and information endpoints
- OpenTelemetry instrumentation

Middleware are executed in reverse order of registration, so the favicon
middleware, registered first, sits closest to the routes and runs inside the
request context and request logging layers.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request
from loguru import logger

from src.api.middleware.error_handler import register_exception_handlers
from src.api.middleware.favicon import FaviconMiddleware
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.exceptions import IconUnavailableError
from src.core.favicon import IconStore
from src.core.logging import setup_logging
from src.core.observability import instrument_app, setup_tracing


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.

    Raises:
        RuntimeError: If the icon is preloaded and cannot be read.
    """
    store: IconStore = app_instance.state.icon_store

    if store.config.preload:
        try:
            await store.get_icon()
        except IconUnavailableError as exc:
            logger.error("Icon preload failed during startup: {}", exc.message)
            msg = f"Icon preload failed: {exc.message}"
            raise RuntimeError(msg) from exc

    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown complete")


def get_icon_store(request: Request) -> IconStore:
    """Dependency returning the application's icon store."""
    store: IconStore = request.app.state.icon_store
    return store


def create_app(
    settings: Settings | None = None, icon_store: IconStore | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().
        icon_store: Optional icon store. If not provided, one is built from
            ``settings.favicon_config``.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()
    if icon_store is None:
        icon_store = IconStore(settings.favicon_config)

    setup_logging(settings)
    setup_tracing(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    application.state.icon_store = icon_store

    register_exception_handlers(application)

    # 3. Favicon middleware (innermost, answers /favicon.ico)
    application.add_middleware(FaviconMiddleware, store=icon_store)

    # 2. Request logging middleware (logs requests/responses)
    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)

    # 1. Request context middleware (creates correlation ID)
    application.add_middleware(RequestContextMiddleware)

    @application.get("/health")
    async def health(
        store: Annotated[IconStore, Depends(get_icon_store)],
    ) -> dict[str, object]:
        """Health check endpoint for container orchestration.

        Returns:
            dict[str, object]: Status and whether the icon is held in memory.
        """
        return {"status": "healthy", "icon_cached": store.is_loaded}

    @application.get("/info")
    async def info(
        app_settings: Annotated[Settings, Depends(get_settings)],
        store: Annotated[IconStore, Depends(get_icon_store)],
    ) -> dict[str, Any]:
        """Get application information.

        Returns:
            dict[str, Any]: Application name, version, environment and the
                favicon settings in effect.
        """
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
            "icon_path": store.config.icon_path,
            "max_age_seconds": store.max_age_seconds,
        }

    instrument_app(application, settings)

    return application


app = create_app()
