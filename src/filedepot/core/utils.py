"""Utility functions for image processing and display."""

import logging
from pathlib import Path

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from src.filedepot.core.constants import (
    DEFAULT_JPEG_QUALITY,
    DEFAULT_THUMBNAIL_MAX_SIZE,
    JPEG_FORMAT,
    RGB_MODE,
)
from src.filedepot.core.models import ThumbnailStatus

logger = logging.getLogger(__name__)


def compute_thumbnail_size(width: int, height: int, max_size: int) -> tuple[int, int]:
    """Bound the longer side at ``max_size`` keeping the aspect ratio."""
    if width == height:
        return max_size, max_size
    if width > height:
        return max_size, max(1, round(max_size * height / width))
    return max(1, round(max_size * width / height)), max_size


def generate_thumbnail(
    image_path: Path,
    thumbnail_path: Path,
    max_size: int = DEFAULT_THUMBNAIL_MAX_SIZE,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> ThumbnailStatus:
    """Write a JPEG thumbnail of ``image_path`` to ``thumbnail_path``.

    Never raises: files that are not images yield ``NOT_AN_IMAGE`` and any
    other problem is logged and reported as ``FAILED``.
    """
    logger.info("Generating thumbnail: %s", thumbnail_path)
    try:
        with PILImage.open(image_path) as img:
            size = compute_thumbnail_size(img.width, img.height, max_size)
            img_rgb = img.convert(RGB_MODE) if img.mode != RGB_MODE else img
            resized = img_rgb.resize(size, PILImage.Resampling.LANCZOS)
            resized.save(thumbnail_path, JPEG_FORMAT, quality=quality)
    except UnidentifiedImageError:
        logger.debug("Not an image, skipping thumbnail: %s", image_path)
        return ThumbnailStatus.NOT_AN_IMAGE
    except Exception:
        logger.exception("Failed to generate thumbnail: %s", thumbnail_path)
        return ThumbnailStatus.FAILED
    return ThumbnailStatus.CREATED


def format_file_size(length: int) -> str:
    """Render a byte count the way the file index shows it."""
    if length < 1 << 10:
        return f"{length} B"
    if length < 1 << 20:
        return f"{length >> 10} KB+"
    if length < 1 << 30:
        return f"{length >> 20} MB+"
    if length < 1 << 40:
        return f"{length >> 30} GB+"
    return f"{length >> 40} TB+"
