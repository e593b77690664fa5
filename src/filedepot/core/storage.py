"""Local disk storage for uploaded files and their thumbnails."""

import asyncio
import errno
import logging
import os
import time
import weakref
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path, PurePath

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from src.filedepot.core.config import Settings
from src.filedepot.core.constants import (
    COPY_CHUNK_SIZE,
    ERROR_FILE_NAME_REQUIRED,
    ERROR_INVALID_FILE_NAME,
    THUMBNAIL_SUFFIX,
)
from src.filedepot.core.models import (
    BatchOutcome,
    FileOutcome,
    RemovalResult,
    StoredFileInfo,
)
from src.filedepot.core.paths import StorageKind, StoragePaths
from src.filedepot.core.utils import generate_thumbnail

logger = logging.getLogger(__name__)

_FORBIDDEN_CHARACTERS = ("/", "\\", "\x00")


class InvalidFilenameError(ValueError):
    """Raised for names that cannot be used as a flat file name."""


def validate_filename(filename: str | None) -> str:
    """Return ``filename`` unchanged if it names a file directly in a directory."""
    if not filename:
        raise InvalidFilenameError(ERROR_FILE_NAME_REQUIRED)
    if (
        filename in (".", "..")
        or any(char in filename for char in _FORBIDDEN_CHARACTERS)
        or PurePath(filename).name != filename
    ):
        raise InvalidFilenameError(f"{ERROR_INVALID_FILE_NAME}: {filename!r}")
    return filename


def _creation_time(stat: os.stat_result) -> float:
    # st_birthtime is missing on most Linux builds
    return getattr(stat, "st_birthtime", stat.st_ctime)


def sort_files(files: Iterable[StoredFileInfo]) -> list[StoredFileInfo]:
    """Order by creation time, then by name."""
    return sorted(files, key=lambda info: (info.created_at, info.name))


def _is_missing(err: OSError) -> bool:
    # A name too long for the filesystem can never have been stored
    return isinstance(err, FileNotFoundError) or err.errno == errno.ENAMETOOLONG


def _unlink_if_present(path: Path) -> bool:
    """Delete ``path``; False if there was nothing to delete."""
    try:
        path.unlink()
    except OSError as err:
        if _is_missing(err):
            return False
        raise
    return True


def _flush_to_disk(out) -> None:
    out.flush()
    os.fsync(out.fileno())


class FileStore:
    """Receives, lists and removes files under the configured directories."""

    def __init__(
        self,
        paths: StoragePaths,
        thumbnail_max_size: int,
        jpeg_quality: int,
    ) -> None:
        self.paths = paths
        self.thumbnail_max_size = thumbnail_max_size
        self.jpeg_quality = jpeg_quality
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileStore":
        return cls(
            paths=StoragePaths.from_settings(settings),
            thumbnail_max_size=settings.thumbnail_max_size,
            jpeg_quality=settings.jpeg_quality,
        )

    def upload_path_for(self, filename: str) -> Path:
        return self.paths.resolve(StorageKind.UPLOAD) / validate_filename(filename)

    def thumbnail_path_for(self, filename: str) -> Path:
        validate_filename(filename)
        return self.paths.resolve(StorageKind.THUMBNAIL) / f"{filename}{THUMBNAIL_SUFFIX}"

    def file_path(self, filename: str | None) -> Path | None:
        """Path of an existing stored file, or None."""
        return self._existing(filename, self.upload_path_for)

    def thumbnail_path(self, filename: str | None) -> Path | None:
        """Path of an existing thumbnail, or None."""
        return self._existing(filename, self.thumbnail_path_for)

    @staticmethod
    def _existing(filename, resolve) -> Path | None:
        try:
            path = resolve(filename)
            return path if path.is_file() else None
        except (InvalidFilenameError, OSError):
            # OSError covers names the filesystem cannot hold (ENAMETOOLONG)
            return None

    def _lock_for(self, filename: str) -> asyncio.Lock:
        lock = self._locks.get(filename)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[filename] = lock
        return lock

    async def receive(self, filename: str, upload: UploadFile) -> FileOutcome:
        """Stream ``upload`` to the upload directory, then derive its thumbnail.

        Uploads sharing a name are serialized; the last one to finish wins.
        Any thumbnail of the previous content is dropped first. Errors are
        logged and re-raised, leaving any partial file in place.
        """
        destination = self.upload_path_for(filename)
        thumbnail = self.thumbnail_path_for(filename)
        lock = self._lock_for(filename)
        async with lock:
            written = 0
            started = time.perf_counter()
            logger.info("Receiving file: %s", destination)
            try:
                await run_in_threadpool(_unlink_if_present, thumbnail)
                out = await run_in_threadpool(destination.open, "wb")
                try:
                    while True:
                        chunk = await upload.read(COPY_CHUNK_SIZE)
                        if not chunk:
                            break
                        await run_in_threadpool(out.write, chunk)
                        written += len(chunk)
                    await run_in_threadpool(_flush_to_disk, out)
                finally:
                    await run_in_threadpool(out.close)
            except Exception:
                logger.exception(
                    "Failed to receive file: %s (%d bytes), elapsed: %.3fs",
                    filename,
                    written,
                    time.perf_counter() - started,
                )
                raise
            logger.info(
                "Received file: %s (%d bytes), elapsed: %.3fs",
                filename,
                written,
                time.perf_counter() - started,
            )

            status = await run_in_threadpool(
                generate_thumbnail,
                destination,
                thumbnail,
                self.thumbnail_max_size,
                self.jpeg_quality,
            )
        return FileOutcome(filename=filename, size=written, success=True, thumbnail=status)

    async def receive_batch(self, uploads: Iterable[UploadFile]) -> BatchOutcome:
        """Receive every upload; a failing file does not stop the rest."""
        batch = BatchOutcome()
        for upload in uploads:
            filename = upload.filename or ""
            try:
                outcome = await self.receive(filename, upload)
            except (OSError, ValueError) as err:
                logger.warning("Upload rejected: %r: %s", filename, err)
                outcome = FileOutcome(
                    filename=filename,
                    size=upload.size or 0,
                    success=False,
                    error=str(err),
                )
            finally:
                await upload.close()
            batch.files.append(outcome)
        return batch

    def list_files(self) -> list[StoredFileInfo]:
        """Snapshot of the upload directory; empty if it does not exist."""
        directory = self.paths.resolve(StorageKind.UPLOAD)
        try:
            entries = list(directory.iterdir())
        except (FileNotFoundError, NotADirectoryError):
            return []

        files = []
        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                stat = entry.stat()
            except FileNotFoundError:
                # Removed between iterdir() and stat()
                continue
            files.append(
                StoredFileInfo(
                    name=entry.name,
                    size=stat.st_size,
                    created_at=datetime.fromtimestamp(_creation_time(stat), tz=UTC),
                ),
            )
        return sort_files(files)

    def remove(self, filename: str | None) -> RemovalResult:
        """Delete the thumbnail, then the file itself.

        Missing files count as already deleted. Other failures are
        collected into ``RemovalResult.error``.
        """
        result = RemovalResult(filename=filename or "")
        try:
            targets = (
                ("removed_thumbnail", self.thumbnail_path_for(filename)),
                ("removed_file", self.upload_path_for(filename)),
            )
        except InvalidFilenameError as err:
            result.error = str(err)
            return result

        errors = []
        for flag, path in targets:
            try:
                removed = _unlink_if_present(path)
            except OSError as err:
                logger.warning("Failed to remove file: %s", err)
                errors.append(str(err))
                continue
            if removed:
                setattr(result, flag, True)
                logger.info("Removed file: %s", path)

        if errors:
            result.error = "; ".join(errors)
        return result
