"""Sync log endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mailqueue.api.deps import get_session, get_settings
from mailqueue.config import Settings
from mailqueue.schemas.sync_log import SyncLogEntryResponse, SyncLogListResponse
from mailqueue.services.datetime_service import as_utc
from mailqueue.services.sync_log_service import get_sync_logs

router = APIRouter(prefix="/api/sync-log", tags=["sync-log"])


@router.get("", response_model=SyncLogListResponse)
async def list_sync_logs(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    limit: Annotated[int | None, Query(ge=1, le=1000)] = None,
) -> SyncLogListResponse:
    """Recent sync attempts, newest first. Entries past the retention window are dropped."""
    entries = await get_sync_logs(
        session,
        limit or settings.sync_log_default_limit,
        retention_hours=settings.sync_log_retention_hours,
    )
    return SyncLogListResponse(
        entries=[
            SyncLogEntryResponse(
                id=entry.id,
                queue_type=entry.queue_type,
                unc_path=entry.unc_path,
                files_scanned=entry.files_scanned,
                files_added=entry.files_added,
                files_updated=entry.files_updated,
                files_deleted=entry.files_deleted,
                errors=entry.errors,
                status=entry.status,
                message=entry.message,
                synced_at=as_utc(entry.synced_at),
            )
            for entry in entries
        ]
    )
