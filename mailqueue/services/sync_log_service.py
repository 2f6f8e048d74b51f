"""Append-only audit trail of reconciliation attempts with rolling retention."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from mailqueue.models.sync_log import SyncLog
from mailqueue.services.datetime_service import hours_ago, now_utc

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

RETENTION_HOURS = 24
DEFAULT_LIMIT = 100


class SyncStatus(StrEnum):
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


@dataclass
class SyncLogParams:
    """Values for a new sync log entry."""

    queue_type: str
    unc_path: str
    files_scanned: int = 0
    files_added: int = 0
    files_updated: int = 0
    files_deleted: int = 0
    errors: int = 0
    status: SyncStatus = SyncStatus.SUCCESS
    message: str | None = None


async def cleanup_old_logs(
    session: AsyncSession,
    *,
    retention_hours: int = RETENTION_HOURS,
    now: datetime | None = None,
) -> int:
    """Delete entries older than the retention window. Returns rows deleted."""
    cutoff = hours_ago(retention_hours, now=now)
    result = await session.execute(delete(SyncLog).where(SyncLog.synced_at < cutoff))
    await session.commit()
    deleted: int = result.rowcount or 0  # type: ignore[attr-defined]
    if deleted:
        logger.debug("Removed %d sync log entries older than %d hours", deleted, retention_hours)
    return deleted


async def add_sync_log(
    session: AsyncSession,
    params: SyncLogParams,
    *,
    retention_hours: int = RETENTION_HOURS,
) -> SyncLog:
    """Record one reconciliation attempt, then trim expired entries."""
    entry = SyncLog(
        queue_type=params.queue_type,
        unc_path=params.unc_path,
        files_scanned=params.files_scanned,
        files_added=params.files_added,
        files_updated=params.files_updated,
        files_deleted=params.files_deleted,
        errors=params.errors,
        status=str(params.status),
        message=params.message or None,
        synced_at=now_utc(),
    )
    session.add(entry)
    await session.commit()
    await cleanup_old_logs(session, retention_hours=retention_hours)
    return entry


async def get_sync_logs(
    session: AsyncSession,
    limit: int = DEFAULT_LIMIT,
    *,
    retention_hours: int = RETENTION_HOURS,
) -> list[SyncLog]:
    """Return the newest entries first, after trimming expired ones."""
    await cleanup_old_logs(session, retention_hours=retention_hours)
    result = await session.execute(
        select(SyncLog).order_by(SyncLog.synced_at.desc(), SyncLog.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def record_sync_attempt(
    session_factory: async_sessionmaker[AsyncSession],
    params: SyncLogParams,
    *,
    retention_hours: int = RETENTION_HOURS,
) -> None:
    """Best-effort append used by the sync paths.

    The log is an audit trail, not a consistency boundary: a failure here is
    logged and never undoes or fails the reconciliation it describes.
    """
    try:
        async with session_factory() as session:
            await add_sync_log(session, params, retention_hours=retention_hours)
    except Exception:
        logger.exception(
            "Failed to write sync log entry for %s queue (%s)", params.queue_type, params.unc_path
        )
