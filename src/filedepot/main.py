"""File upload and download service"""

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.filedepot.api.routes import files_router, home_router, templates
from src.filedepot.core.config import Settings, get_settings
from src.filedepot.core.constants import (
    APP_DESCRIPTION,
    APP_TITLE,
    APP_VERSION,
    HTTP_500_INTERNAL_SERVER_ERROR,
    STATIC_DIR,
)
from src.filedepot.core.rate_limiter import limiter
from src.filedepot.core.storage import FileStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.store.paths.ensure_directories()
    yield


async def log_connection(request: Request, call_next):
    """Log every request with its client address and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    client = request.client.host if request.client else "-"
    logger.info(
        "%s %s %s -> %d (%.1fms)",
        client,
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


async def render_server_error(request: Request, exc: Exception) -> HTMLResponse:
    """Render the error page for unhandled exceptions."""
    request_id = uuid.uuid4().hex
    logger.error("Unhandled error [%s]: %s", request_id, exc, exc_info=exc)
    return templates.TemplateResponse(
        request,
        "error.html",
        {"request_id": request_id},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around ``settings``."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = FileStore.from_settings(settings)

    # Rate limiting
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    if not settings.debug:
        app.add_exception_handler(Exception, render_server_error)

    app.middleware("http")(log_connection)

    # Static files
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    app.include_router(home_router)
    app.include_router(files_router)
    return app


app = create_app()
