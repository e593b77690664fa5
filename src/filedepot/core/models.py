"""Pydantic models for data validation."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class ThumbnailStatus(StrEnum):
    """Outcome of a thumbnail generation attempt."""

    CREATED = "created"
    NOT_AN_IMAGE = "not_an_image"
    FAILED = "failed"


class StoredFileInfo(BaseModel):
    """A file in the upload directory."""

    name: str = Field(description="File name")
    size: int = Field(description="File size in bytes")
    created_at: datetime = Field(description="Creation timestamp")


class FileOutcome(BaseModel):
    """Result of receiving a single uploaded file."""

    filename: str = Field(description="Client supplied file name")
    size: int = Field(default=0, description="Bytes received")
    success: bool = Field(description="Whether the file was stored")
    error: str | None = Field(default=None, description="Failure message")
    thumbnail: ThumbnailStatus | None = Field(
        default=None,
        description="Thumbnail generation status",
    )


class BatchOutcome(BaseModel):
    """Per-file results for one upload request."""

    files: list[FileOutcome] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.files)

    @property
    def total_bytes(self) -> int:
        return sum(outcome.size for outcome in self.files)

    @property
    def succeeded(self) -> list[FileOutcome]:
        return [outcome for outcome in self.files if outcome.success]

    @property
    def failed(self) -> list[FileOutcome]:
        return [outcome for outcome in self.files if not outcome.success]


class RemovalResult(BaseModel):
    """Result of deleting a stored file and its thumbnail."""

    filename: str = Field(description="Requested file name")
    removed_file: bool = Field(default=False, description="Primary file was deleted")
    removed_thumbnail: bool = Field(default=False, description="Thumbnail was deleted")
    error: str | None = Field(default=None, description="Failure message")

    @property
    def ok(self) -> bool:
        return not self.error


class UploadResponse(BaseModel):
    """Response model for the AJAX upload endpoints."""

    message: str = Field(description="Summary message")
    files: list[FileOutcome] = Field(description="Per-file results")
    failed: list[str] = Field(description="Names of files that were not stored")

    @classmethod
    def from_batch(cls, message: str, batch: BatchOutcome) -> "UploadResponse":
        return cls(
            message=message,
            files=batch.files,
            failed=[outcome.filename for outcome in batch.failed],
        )


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str = Field(description="Operation message")
