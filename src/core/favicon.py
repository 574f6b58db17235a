"""In-memory favicon store with lazily loaded icon bytes.

The store owns the favicon configuration and a process-lifetime copy of the
icon file. The file is read on first use and never again once a read has
succeeded; the icon is treated as static for the lifetime of the process.

Concurrent first requests may each find the cache empty and read the file.
The read is idempotent, so the duplicate work is harmless and the last
assignment wins.
"""

from pathlib import Path

import anyio
from loguru import logger
from pydantic import BaseModel, ConfigDict

from src.core.config import FaviconConfig
from src.core.constants import (
    DEFAULT_ICON_PATH,
    DEFAULT_MAX_CACHE_DAYS,
    SECONDS_PER_DAY,
)
from src.core.exceptions import IconUnavailableError
from src.core.http_caching import generate_etag
from src.core.observability import trace_operation


class IconHeaders(BaseModel):
    """Response headers derived from the cached icon and the configuration."""

    model_config = ConfigDict(frozen=True)

    etag: str
    cache_control: str
    content_length: str

    def as_dict(self) -> dict[str, str]:
        """Render the headers with their HTTP names.

        Returns:
            dict[str, str]: Lowercase header names mapped to their values.
        """
        return {
            "etag": self.etag,
            "cache-control": self.cache_control,
            "content-length": self.content_length,
        }


class IconStore:
    """Holds the favicon configuration and the memoized icon bytes.

    Args:
        config: Favicon configuration. Defaults are used when omitted.
    """

    def __init__(self, config: FaviconConfig | None = None) -> None:
        self._config = config or FaviconConfig()
        self._icon: bytes | None = None

    @property
    def config(self) -> FaviconConfig:
        """Current favicon configuration."""
        return self._config

    @property
    def icon(self) -> bytes | None:
        """Cached icon bytes, or None until the first successful read."""
        return self._icon

    @property
    def is_loaded(self) -> bool:
        """Whether the icon has been read into memory."""
        return self._icon is not None

    @property
    def icon_file(self) -> Path:
        """Location of the icon file on disk."""
        return Path(self._config.base_dir) / self._config.icon_path

    @property
    def max_age_seconds(self) -> int:
        """Client cache lifetime in seconds."""
        return self._config.max_cache_days * SECONDS_PER_DAY

    def configure(
        self,
        *,
        icon_path: str = DEFAULT_ICON_PATH,
        max_cache_days: int = DEFAULT_MAX_CACHE_DAYS,
    ) -> None:
        """Overwrite the icon path and cache lifetime.

        Arguments that are not given fall back to their defaults. The file is
        not checked here; a bad path surfaces on the first read.

        Args:
            icon_path: Icon file path, relative to the configured base directory.
            max_cache_days: Number of days clients may cache the icon.

        Raises:
            pydantic.ValidationError: If ``max_cache_days`` is negative.
        """
        self._config = FaviconConfig.model_validate(
            {
                **self._config.model_dump(),
                "icon_path": icon_path,
                "max_cache_days": max_cache_days,
            }
        )
        logger.debug(
            "Favicon configured",
            icon_path=icon_path,
            max_cache_days=max_cache_days,
        )

    async def get_icon(self) -> bytes:
        """Return the icon bytes, reading the file on first use.

        Returns:
            bytes: The icon file contents.

        Raises:
            IconUnavailableError: If the icon file cannot be read. The cache
                stays empty, so the next call tries again.
        """
        if self._icon is None:
            self._icon = await self._read_icon_file()
        return self._icon

    async def _read_icon_file(self) -> bytes:
        icon_file = self.icon_file

        with trace_operation("favicon.read", icon_path=str(icon_file)):
            try:
                icon = await anyio.Path(icon_file).read_bytes()
            except OSError as exc:
                logger.error(
                    "Failed to read icon file {}: {}",
                    icon_file,
                    exc,
                    icon_path=str(icon_file),
                )
                raise IconUnavailableError(str(icon_file), cause=exc) from exc

        logger.info(
            "Icon loaded into memory",
            icon_path=str(icon_file),
            icon_size=len(icon),
        )
        return icon

    def build_headers(self, icon: bytes) -> IconHeaders:
        """Compute the validator and caching headers for the icon.

        Args:
            icon: The icon bytes being served.

        Returns:
            IconHeaders: etag, cache-control and content-length values.
        """
        return IconHeaders(
            etag=generate_etag(icon),
            cache_control=f"public, max-age={self.max_age_seconds}",
            content_length=str(len(icon)),
        )
