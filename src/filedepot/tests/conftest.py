"""
Pytest fixtures shared across all test modules.
Every test gets its own base directory under tmp_path, so the upload and
thumbnail directories start out empty.
"""

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from starlette.datastructures import Headers, UploadFile

from src.filedepot.core.config import Settings
from src.filedepot.core.storage import FileStore
from src.filedepot.main import create_app


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        base_dir=tmp_path,
        thumbnail_max_size=200,
        rate_limit_enabled=False,
        debug=True,
        _env_file=None,
    )


@pytest.fixture()
def store(settings) -> FileStore:
    file_store = FileStore.from_settings(settings)
    file_store.paths.ensure_directories()
    return file_store


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height)).save(buffer, fmt)
    return buffer.getvalue()


def make_upload(filename: str, content: bytes, content_type: str = "application/octet-stream") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        size=len(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )
