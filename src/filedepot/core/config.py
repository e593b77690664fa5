"""Application settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.filedepot.core.constants import (
    DEFAULT_JPEG_QUALITY,
    DEFAULT_MAX_REQUEST_BODY_SIZE,
    DEFAULT_MAX_UPLOAD_FILES,
    DEFAULT_THUMBNAIL_MAX_SIZE,
    THUMBNAIL_DIRECTORY_NAME,
    UPLOAD_DIRECTORY_NAME,
)


class Settings(BaseSettings):
    """Runtime configuration, read from ``FILEDEPOT_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FILEDEPOT_",
        env_file=".env",
        extra="ignore",
    )

    # Storage
    base_dir: Path = Path.cwd()
    upload_dir_name: str = UPLOAD_DIRECTORY_NAME
    thumbnail_dir_name: str = THUMBNAIL_DIRECTORY_NAME

    # Thumbnails
    thumbnail_max_size: int = DEFAULT_THUMBNAIL_MAX_SIZE
    jpeg_quality: int = DEFAULT_JPEG_QUALITY

    # Request limits; None disables the limit for that endpoint
    max_request_body_size: int | None = DEFAULT_MAX_REQUEST_BODY_SIZE
    ajax_max_request_body_size: int | None = None
    max_upload_files: int = DEFAULT_MAX_UPLOAD_FILES

    # Rate limiting
    rate_limit_enabled: bool = True

    # Runtime
    log_level: str = "INFO"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 5000


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings."""
    return Settings()
