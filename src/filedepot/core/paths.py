"""Storage directory resolution."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from src.filedepot.core.config import Settings

logger = logging.getLogger(__name__)


class StorageKind(Enum):
    UPLOAD = "upload"
    THUMBNAIL = "thumbnail"


@dataclass(frozen=True)
class StoragePaths:
    """Absolute locations of the upload and thumbnail directories."""

    upload_dir: Path
    thumbnail_dir: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> "StoragePaths":
        base_dir = Path(settings.base_dir).resolve()
        return cls(
            upload_dir=base_dir / settings.upload_dir_name,
            thumbnail_dir=base_dir / settings.thumbnail_dir_name,
        )

    def resolve(self, kind: StorageKind) -> Path:
        if kind is StorageKind.UPLOAD:
            return self.upload_dir
        return self.thumbnail_dir

    def ensure_directories(self) -> None:
        """Create both directories if missing.

        A directory that cannot be created is logged and left alone; I/O
        against it fails later with the real error.
        """
        for kind in StorageKind:
            path = self.resolve(kind)
            logger.info("%s directory: %s", kind.value.capitalize(), path)
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError:
                logger.exception("Failed to create %s directory: %s", kind.value, path)
