"""Sync log response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SyncLogEntryResponse(BaseModel):
    """One reconciliation attempt."""

    id: int
    queue_type: str
    unc_path: str
    files_scanned: int
    files_added: int
    files_updated: int
    files_deleted: int
    errors: int
    status: str
    message: str | None = None
    synced_at: datetime


class SyncLogListResponse(BaseModel):
    """Recent entries, newest first."""

    entries: list[SyncLogEntryResponse]
