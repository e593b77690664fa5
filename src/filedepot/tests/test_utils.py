"""Tests for thumbnail generation and size formatting."""

import pytest
from PIL import Image

from src.filedepot.core.models import ThumbnailStatus
from src.filedepot.core.utils import (
    compute_thumbnail_size,
    format_file_size,
    generate_thumbnail,
)
from src.filedepot.tests.conftest import image_bytes


class TestComputeThumbnailSize:
    def test_square_is_max_by_max(self):
        assert compute_thumbnail_size(640, 640, 200) == (200, 200)
        assert compute_thumbnail_size(10, 10, 200) == (200, 200)

    def test_wide_image_bounds_width(self):
        assert compute_thumbnail_size(800, 400, 200) == (200, 100)

    def test_tall_image_bounds_height(self):
        assert compute_thumbnail_size(300, 900, 200) == (67, 200)

    @pytest.mark.parametrize(
        ("width", "height"),
        [(801, 400), (1920, 1080), (1000, 999), (4000, 3)],
    )
    def test_wider_than_tall_keeps_height_at_most_width(self, width, height):
        thumb_width, thumb_height = compute_thumbnail_size(width, height, 200)
        assert thumb_width == 200
        assert 1 <= thumb_height <= thumb_width

    def test_extreme_ratio_keeps_one_pixel(self):
        assert compute_thumbnail_size(10_000, 1, 100) == (100, 1)
        assert compute_thumbnail_size(1, 10_000, 100) == (1, 100)

    def test_respects_configured_max(self):
        assert compute_thumbnail_size(800, 400, 100) == (100, 50)


class TestGenerateThumbnail:
    def test_wide_png(self, tmp_path):
        source = tmp_path / "photo.png"
        source.write_bytes(image_bytes(800, 400))
        target = tmp_path / "photo.png.jpg"

        status = generate_thumbnail(source, target, max_size=200)

        assert status is ThumbnailStatus.CREATED
        with Image.open(target) as thumb:
            assert thumb.format == "JPEG"
            assert thumb.size == (200, 100)

    def test_rgba_image_is_converted(self, tmp_path):
        source = tmp_path / "logo.png"
        source.write_bytes(image_bytes(50, 100, mode="RGBA"))
        target = tmp_path / "logo.png.jpg"

        assert generate_thumbnail(source, target, max_size=200) is ThumbnailStatus.CREATED
        with Image.open(target) as thumb:
            assert thumb.mode == "RGB"
            assert thumb.size == (100, 200)

    def test_overwrites_existing_thumbnail(self, tmp_path):
        source = tmp_path / "a.gif"
        source.write_bytes(image_bytes(30, 30, fmt="GIF", mode="P"))
        target = tmp_path / "a.gif.jpg"
        target.write_bytes(b"stale")

        assert generate_thumbnail(source, target, max_size=200) is ThumbnailStatus.CREATED
        with Image.open(target) as thumb:
            assert thumb.size == (200, 200)

    def test_non_image_is_skipped(self, tmp_path):
        source = tmp_path / "notes.txt"
        source.write_text("just some notes")
        target = tmp_path / "notes.txt.jpg"

        assert generate_thumbnail(source, target) is ThumbnailStatus.NOT_AN_IMAGE
        assert not target.exists()

    def test_truncated_image_fails_without_raising(self, tmp_path):
        source = tmp_path / "broken.png"
        source.write_bytes(image_bytes(300, 300)[:60])
        target = tmp_path / "broken.png.jpg"

        assert generate_thumbnail(source, target) is ThumbnailStatus.FAILED

    def test_unwritable_destination_fails_without_raising(self, tmp_path):
        source = tmp_path / "photo.png"
        source.write_bytes(image_bytes(20, 10))
        target = tmp_path / "missing-dir" / "photo.png.jpg"

        assert generate_thumbnail(source, target) is ThumbnailStatus.FAILED


class TestFormatFileSize:
    @pytest.mark.parametrize(
        ("length", "expected"),
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1024, "1 KB+"),
            (5 * 1024 + 10, "5 KB+"),
            (1024 * 1024, "1 MB+"),
            (3 * 1024**3, "3 GB+"),
            (2 * 1024**4, "2 TB+"),
        ],
    )
    def test_units(self, length, expected):
        assert format_file_size(length) == expected
