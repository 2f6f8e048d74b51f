"""PDF listing and sync request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

QueueTypeLiteral = Literal["certified", "regular"]


class ScannedFileSchema(BaseModel):
    """A PDF found in a queue directory, with fields parsed from its name."""

    name: str = Field(min_length=1, max_length=255)
    size: int = Field(ge=0)
    modified_at: datetime
    mail_type: str | None = None
    user: str | None = None
    created_date: str | None = None
    created_time: str | None = None
    is_small_file: bool = False
    raw_filename: str = ""
    display_name: str | None = None


class PdfListResponse(BaseModel):
    """Result of listing a queue directory."""

    success: bool
    files: list[ScannedFileSchema] = Field(default_factory=list)
    path: str | None = None
    error: str | None = None
    error_kind: str | None = None
    sample_filenames: list[str] = Field(default_factory=list)


class SyncRequest(BaseModel):
    """Request to reconcile a listing against the mail record store."""

    files: list[ScannedFileSchema] = Field(max_length=100_000)
    unc_path: str = Field(min_length=1, max_length=512)
    queue_type: QueueTypeLiteral


class SyncResponse(BaseModel):
    """Reconciliation counters."""

    success: bool
    status: str
    message: str
    files_scanned: int
    inserted: int
    updated: int
    deleted: int
    errors: int
    error_kind: str | None = None
