"""API routes for file upload, listing, download and deletion."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from python_multipart.exceptions import MultipartParseError
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.types import Message

from src.filedepot.core.config import Settings
from src.filedepot.core.constants import (
    ERROR_REQUEST_TOO_LARGE,
    HTTP_400_BAD_REQUEST,
    HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    JPEG_MEDIA_TYPE,
    OCTET_STREAM,
    PLACEHOLDER_IMAGE,
    SERVE_RATE_LIMIT,
    STATIC_DIR,
    TEMPLATES_DIR,
    UPLOAD_RATE_LIMIT,
)
from src.filedepot.core.models import MessageResponse, UploadResponse
from src.filedepot.core.rate_limiter import limiter
from src.filedepot.core.storage import FileStore
from src.filedepot.core.utils import format_file_size

logger = logging.getLogger(__name__)

home_router = APIRouter(tags=["home"])
files_router = APIRouter(prefix="/Files", tags=["files"])

templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.filters["filesize"] = format_file_size


def get_store(request: Request) -> FileStore:
    """Dependency to get the file store."""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    """Dependency to get the application settings."""
    return request.app.state.settings


def _check_content_length(request: Request, limit: int | None) -> None:
    """Reject requests that declare a body larger than ``limit``."""
    if limit is None:
        return
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise HTTPException(
            status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=ERROR_REQUEST_TOO_LARGE.format(limit=limit),
        )


def limit_request_body(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> None:
    _check_content_length(request, settings.max_request_body_size)


def limit_ajax_request_body(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> None:
    _check_content_length(request, settings.ajax_max_request_body_size)


class RequestBodyTooLarge(Exception):
    """The streamed body went past the configured limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(ERROR_REQUEST_TOO_LARGE.format(limit=limit))
        self.limit = limit


def _limited_request(request: Request, limit: int | None) -> Request:
    """Wrap ``request`` so reading more than ``limit`` body bytes fails.

    Covers chunked bodies, which carry no Content-Length to check up front.
    """
    if limit is None:
        return request
    received = 0

    async def receive() -> Message:
        nonlocal received
        message = await request.receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise RequestBodyTooLarge(limit)
        return message

    return Request(request.scope, receive)


async def _read_form(request: Request, settings: Settings, limit: int | None) -> FormData:
    """Parse the multipart body; a malformed body becomes a 400."""
    try:
        return await _limited_request(request, limit).form(max_files=settings.max_upload_files)
    except RequestBodyTooLarge as err:
        logger.warning("Request body over %d bytes rejected", err.limit)
        raise HTTPException(
            status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(err),
        ) from err
    except StarletteHTTPException as err:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=err.detail) from err
    except (MultiPartException, MultipartParseError) as err:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(err)) from err


def _uploaded_files(form: FormData, field: str | None = None) -> list[UploadFile]:
    """File parts of ``form``, optionally only those posted under ``field``."""
    values = form.getlist(field) if field else [value for _, value in form.multi_items()]
    return [
        value
        for value in values
        # Browsers post an empty, unnamed part when no file was chosen
        if isinstance(value, UploadFile) and (value.filename or value.size)
    ]


def _placeholder() -> FileResponse:
    return FileResponse(path=STATIC_DIR / PLACEHOLDER_IMAGE)


@home_router.get("/", response_class=HTMLResponse)
@home_router.get("/Home", response_class=HTMLResponse)
@home_router.get("/Home/Index", response_class=HTMLResponse)
async def home_page(request: Request) -> HTMLResponse:
    """Upload page."""
    client = request.client.host if request.client else "-"
    logger.info("%s visited the upload page", client)
    return templates.TemplateResponse(request, "home/index.html", {})


@home_router.get("/Home/Error", response_class=HTMLResponse)
async def error_page(request: Request) -> HTMLResponse:
    """Error page, never cached."""
    return templates.TemplateResponse(
        request,
        "error.html",
        {"request_id": request.headers.get("x-request-id") or uuid.uuid4().hex},
        headers={"Cache-Control": "no-store, no-cache", "Pragma": "no-cache"},
    )


@files_router.post(
    "/UploadFileInput",
    dependencies=[Depends(limit_request_body)],
)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_file_input(
    request: Request,
    store: Annotated[FileStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> RedirectResponse:
    """Receive every file of a plain form submission, then go back home."""
    form = await _read_form(request, settings, settings.max_request_body_size)
    batch = await store.receive_batch(_uploaded_files(form, "uploadFiles"))
    if batch.failed:
        logger.warning(
            "Form upload stored %d of %d files",
            len(batch.succeeded),
            batch.count,
        )
    return RedirectResponse(url="/Home/Index", status_code=303)


@files_router.post(
    "/UploadFileBootstrap",
    dependencies=[Depends(limit_request_body)],
)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_file_bootstrap(
    request: Request,
    store: Annotated[FileStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UploadResponse:
    """Receive the file(s) of one per-file AJAX request."""
    form = await _read_form(request, settings, settings.max_request_body_size)
    batch = await store.receive_batch(_uploaded_files(form))
    names = ", ".join(outcome.filename for outcome in batch.files)
    return UploadResponse.from_batch(f"Received {batch.count} files: {names}", batch)


@files_router.post(
    "/UploadFileAjax",
    dependencies=[Depends(limit_ajax_request_body)],
)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_file_ajax(
    request: Request,
    store: Annotated[FileStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UploadResponse:
    """Receive every file of one bulk AJAX request."""
    form = await _read_form(request, settings, settings.ajax_max_request_body_size)
    batch = await store.receive_batch(_uploaded_files(form))
    return UploadResponse.from_batch(
        f"{batch.count} files, {batch.total_bytes} bytes",
        batch,
    )


@files_router.get("", response_class=HTMLResponse)
@files_router.get("/Index", response_class=HTMLResponse)
async def file_index(
    request: Request,
    store: Annotated[FileStore, Depends(get_store)],
) -> HTMLResponse:
    """List stored files, oldest first."""
    files = await run_in_threadpool(store.list_files)
    return templates.TemplateResponse(
        request,
        "files/index.html",
        {"files": files, "upload_dir": store.paths.upload_dir},
    )


@files_router.get("/DownloadFile")
@limiter.limit(SERVE_RATE_LIMIT)
async def download_file(
    request: Request,  # noqa: ARG001
    store: Annotated[FileStore, Depends(get_store)],
    file_name: Annotated[str, Query(alias="fileName")] = "",
) -> FileResponse:
    """Download a stored file, or the placeholder if there is none."""
    path = store.file_path(file_name)
    if path is None:
        return _placeholder()
    return FileResponse(path=path, media_type=OCTET_STREAM, filename=path.name)


@files_router.get("/ThumbnailFile")
@limiter.limit(SERVE_RATE_LIMIT)
async def thumbnail_file(
    request: Request,  # noqa: ARG001
    store: Annotated[FileStore, Depends(get_store)],
    file_name: Annotated[str, Query(alias="fileName")] = "",
) -> FileResponse:
    """Serve a thumbnail, or the placeholder if there is none."""
    path = store.thumbnail_path(file_name)
    if path is None:
        return _placeholder()
    return FileResponse(path=path, media_type=JPEG_MEDIA_TYPE)


@files_router.post("/DeleteFile")
async def delete_file(
    store: Annotated[FileStore, Depends(get_store)],
    file_name: Annotated[str, Query(alias="fileName")] = "",
) -> MessageResponse:
    """Delete a stored file and its thumbnail."""
    result = await run_in_threadpool(store.remove, file_name)
    if not result.ok:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=result.error)
    return MessageResponse(message=f"Deleted file: {file_name}")
