"""Reconciliation of a scanned queue directory against the mail record store.

A reconciliation runs in one store transaction:

1. snapshot the filenames persisted for the queue path (``existing``);
2. upsert every scanned file, each inside its own SAVEPOINT so a failing row
   is counted and skipped without aborting the batch. A file counts as an
   insert when its name was not in ``existing`` and as an update otherwise,
   whether or not any field changed;
3. delete exactly ``existing - current``;
4. commit. A failure in step 3 or 4 rolls everything back.

Every call appends one sync log entry unless the caller opts out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError

from mailqueue.exceptions import ConfigMissingError, StoreError
from mailqueue.services.config_service import StoreConfig
from mailqueue.services.datetime_service import as_utc, now_utc
from mailqueue.services.display_name_service import format_display_name
from mailqueue.services.store_errors import classify_store_error
from mailqueue.services.store_service import (
    delete_records,
    fetch_filenames,
    file_exists,
    open_store,
    upsert_record,
)
from mailqueue.services.sync_log_service import (
    RETENTION_HOURS,
    SyncLogParams,
    SyncStatus,
    record_sync_attempt,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from mailqueue.config import Settings
    from mailqueue.filesystem.scanner import ScannedFile
    from mailqueue.services.config_service import AppConfigValues

logger = logging.getLogger(__name__)


class QueueType(StrEnum):
    CERTIFIED = "certified"
    REGULAR = "regular"


@dataclass(frozen=True)
class SyncEnvironment:
    """Collaborators a reconciliation needs besides its inputs."""

    store: StoreConfig
    log_sessions: async_sessionmaker[AsyncSession]
    connect_timeout: int = 10
    create_schema: bool = False
    log_retention_hours: int = RETENTION_HOURS

    @classmethod
    def from_settings(
        cls,
        values: AppConfigValues,
        settings: Settings,
        log_sessions: async_sessionmaker[AsyncSession],
    ) -> SyncEnvironment:
        return cls(
            store=StoreConfig.from_values(values, settings),
            log_sessions=log_sessions,
            connect_timeout=settings.store_connect_timeout_seconds,
            create_schema=settings.store_create_schema,
            log_retention_hours=settings.sync_log_retention_hours,
        )


@dataclass
class ReconcileCounts:
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    errors: int = 0


@dataclass
class SyncResult:
    """Outcome of one reconciliation."""

    success: bool
    status: SyncStatus
    message: str
    files_scanned: int = 0
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    errors: int = 0
    error_kind: str | None = None


def record_values(
    file: ScannedFile,
    unc_path: str,
    queue_type: str,
    synced_at: datetime,
) -> dict[str, Any]:
    """Column values persisted for ``file``."""
    return {
        "unc_path": unc_path,
        "filename": file.name,
        "queue_type": queue_type,
        "mail_type": file.mail_type,
        "username": file.user,
        "display_name": format_display_name(file.user),
        "created_date": file.created_date,
        "created_time": file.created_time,
        "file_size": file.size,
        "file_modified_at": (
            as_utc(file.modified_at).replace(tzinfo=None) if file.modified_at else None
        ),
        "is_small_file": file.is_small_file,
        "synced_at": synced_at,
    }


async def apply_reconciliation(
    engine: AsyncEngine,
    files: Sequence[ScannedFile],
    unc_path: str,
    queue_type: str,
) -> ReconcileCounts:
    """Run the insert/update/delete diff for ``unc_path`` in one transaction.

    Per-row upsert failures are counted in ``errors``. Any other failure
    propagates after the transaction has been rolled back.
    """
    counts = ReconcileCounts()
    synced_at = now_utc().replace(tzinfo=None)

    async with engine.connect() as conn:
        async with conn.begin():
            existing = await fetch_filenames(conn, unc_path)
            current = {f.name for f in files}

            for file in files:
                try:
                    async with conn.begin_nested():
                        await upsert_record(
                            conn, record_values(file, unc_path, queue_type, synced_at)
                        )
                except SQLAlchemyError as exc:
                    counts.errors += 1
                    logger.warning("Failed to upsert %s in %s: %s", file.name, unc_path, exc)
                    continue
                if file.name in existing:
                    counts.updated += 1
                else:
                    counts.inserted += 1

            stale = existing - current
            if stale:
                counts.deleted = await delete_records(conn, unc_path, stale)

    return counts


def unique_by_name(files: Sequence[ScannedFile]) -> list[ScannedFile]:
    """Drop repeated filenames; the last occurrence wins, in first-seen order."""
    by_name: dict[str, ScannedFile] = {}
    for file in files:
        by_name[file.name] = file
    return list(by_name.values())


def summarize(files_scanned: int, counts: ReconcileCounts) -> str:
    message = (
        f"Synced {files_scanned} file(s): {counts.inserted} added, "
        f"{counts.updated} updated, {counts.deleted} removed"
    )
    if counts.errors:
        message += f", {counts.errors} error(s)"
    return message


async def reconcile_files(
    files: Sequence[ScannedFile],
    unc_path: str,
    queue_type: str,
    env: SyncEnvironment,
    *,
    skip_logging: bool = False,
) -> SyncResult:
    """Reconcile ``files`` against the store and report exact counts.

    A filename listed more than once is reconciled and counted once. Never
    raises for store, configuration or queue-type problems: they come back
    as a failed ``SyncResult`` with ``status == "error"``.
    """
    files = unique_by_name(files)
    if queue_type in {q.value for q in QueueType}:
        result = await _reconcile(files, unc_path, queue_type, env)
    else:
        logger.error("Sync of %s aborted: unknown queue type", unc_path)
        result = _failed(f"Invalid queue type: {queue_type}", "invalid_queue")

    if not skip_logging:
        await record_sync_attempt(
            env.log_sessions,
            SyncLogParams(
                queue_type=queue_type,
                unc_path=unc_path,
                files_scanned=result.files_scanned,
                files_added=result.inserted,
                files_updated=result.updated,
                files_deleted=result.deleted,
                errors=result.errors,
                status=result.status,
                message=result.message,
            ),
            retention_hours=env.log_retention_hours,
        )
    return result


async def _reconcile(
    files: Sequence[ScannedFile],
    unc_path: str,
    queue_type: str,
    env: SyncEnvironment,
) -> SyncResult:
    files_scanned = len(files)
    try:
        async with open_store(
            env.store,
            connect_timeout=env.connect_timeout,
            create_schema=env.create_schema,
        ) as engine:
            counts = await apply_reconciliation(engine, files, unc_path, queue_type)
    except ConfigMissingError as exc:
        logger.error("Sync of %s queue aborted: %s", queue_type, exc)
        result = _failed(str(exc), "config_missing")
    except (SQLAlchemyError, OSError, StoreError) as exc:
        error = classify_store_error(exc, env.store)
        logger.error(
            "Sync of %s queue (%s) failed and was rolled back: %s",
            queue_type,
            unc_path,
            exc,
        )
        result = _failed(error.message, str(error.kind))
    else:
        status = SyncStatus.SUCCESS if counts.errors == 0 else SyncStatus.PARTIAL
        result = SyncResult(
            success=True,
            status=status,
            message=summarize(files_scanned, counts),
            files_scanned=files_scanned,
            inserted=counts.inserted,
            updated=counts.updated,
            deleted=counts.deleted,
            errors=counts.errors,
        )
        logger.info("Sync of %s queue (%s): %s", queue_type, unc_path, result.message)
    return result


def _failed(message: str, kind: str) -> SyncResult:
    return SyncResult(
        success=False,
        status=SyncStatus.ERROR,
        message=message,
        errors=1,
        error_kind=kind,
    )


async def verify_file_in_store(filename: str, unc_path: str, env: SyncEnvironment) -> bool:
    """Identity check used before serving a file from a queue directory."""
    return await file_exists(filename, unc_path, env.store, connect_timeout=env.connect_timeout)

