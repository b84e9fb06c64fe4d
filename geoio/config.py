# -*- coding: utf-8 -*-
"""Runtime settings for geoio.

Settings are read from environment variables prefixed with ``GEOIO_`` (or a
``.env`` file in the working directory):

- GEOIO_OVERWRITE → overwrite
- GEOIO_READ_INTO_MEMORY → read_into_memory
- GEOIO_GTIFF_COMPRESSION → gtiff_compression
- GEOIO_DOWNLOAD_DIR → download_dir
- GEOIO_REQUEST_TIMEOUT → request_timeout
- GEOIO_CHUNK_SIZE → chunk_size
- GEOIO_LOG_LEVEL → log_level
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["GeoIOSettings", "get_settings", "setup_logging"]


class GeoIOSettings(BaseSettings):
    """Defaults shared by the reading and writing functions.

    Attributes:
        overwrite: Replace existing raster files when writing (default: False)
        read_into_memory: Load raster values when opening instead of on first access
        gtiff_compression: Compression applied to GeoTIFF output when none is given
        download_dir: Directory used for downloaded data
        request_timeout: Timeout in seconds for HTTP downloads
        chunk_size: Bytes per chunk when streaming downloads
        log_level: Level used by setup_logging
    """

    overwrite: bool = Field(False, description="Replace existing raster files when writing")
    read_into_memory: bool = Field(False, description="Read raster values eagerly")
    gtiff_compression: Optional[str] = Field("deflate", description="Default GeoTIFF compression")
    download_dir: str = Field("data", description="Directory for downloaded files")
    request_timeout: float = Field(60.0, gt=0, description="HTTP timeout in seconds")
    chunk_size: int = Field(1024 * 1024, gt=0, description="Download chunk size in bytes")
    log_level: str = Field("WARNING", description="Logging level for setup_logging")

    model_config = SettingsConfigDict(
        env_prefix="GEOIO_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings():
    """Return the cached settings instance.

    Call ``get_settings.cache_clear()`` after changing the environment.
    """
    return GeoIOSettings()


def setup_logging(level=None):
    """Configure the ``geoio`` logger with a stream handler.

    Parameters:
    -----------
    level : str or int, optional
        Logging level. Defaults to the configured ``log_level``.

    Returns:
    --------
    logger : logging.Logger
        The package logger
    """
    level = level if level is not None else get_settings().log_level
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger("geoio")
    logger.setLevel(level)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s: %(message)s"))
        logger.addHandler(handler)

    return logger
