"""Main entry point for running the favicon service."""

import os

import uvicorn
from loguru import logger

from src.api.main import app
from src.core.config import get_settings
from src.core.logging import setup_logging

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def build_log_config() -> dict[str, object]:
    """Uvicorn logging config routing every uvicorn logger into Loguru."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {
            "default": {"class": "src.core.logging.InterceptHandler"},
        },
        "loggers": {
            name: {"handlers": ["default"], "level": "INFO", "propagate": False}
            for name in UVICORN_LOGGERS
        },
    }


def main() -> None:
    """Run the application under uvicorn."""
    settings = get_settings()
    setup_logging(settings)

    # Cloud Run and similar platforms inject the port to listen on
    port = int(os.environ.get("PORT", settings.api_port))

    if settings.debug:
        logger.info(
            "Starting Uvicorn on http://{}:{} (development mode with auto-reload)",
            settings.api_host,
            port,
        )
        uvicorn.run(
            "src.api.main:app",
            host=settings.api_host,
            port=port,
            reload=True,
            log_config=build_log_config(),
        )
    else:
        logger.info(
            "Starting Uvicorn on http://{}:{} (production mode)",
            settings.api_host,
            port,
        )
        uvicorn.run(
            app,
            host=settings.api_host,
            port=port,
            reload=False,
            log_config=build_log_config(),
        )


if __name__ == "__main__":
    main()
