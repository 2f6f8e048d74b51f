"""One auto-sync pass over both mail queues."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from mailqueue.filesystem.scanner import list_pdf_files
from mailqueue.services.config_service import DEFAULT_AUTO_SYNC_INTERVAL, get_config
from mailqueue.services.reconcile_service import QueueType, SyncEnvironment, reconcile_files
from mailqueue.services.sync_log_service import SyncLogParams, SyncStatus, record_sync_attempt

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from mailqueue.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class QueueSyncOutcome:
    success: bool
    message: str
    scanned: int = 0


@dataclass
class AutoSyncResult:
    success: bool
    message: str
    certified: QueueSyncOutcome | None = None
    regular: QueueSyncOutcome | None = None


@dataclass(frozen=True)
class AutoSyncStatus:
    enabled: bool
    interval: int


async def get_auto_sync_status(
    session_factory: async_sessionmaker[AsyncSession],
) -> AutoSyncStatus:
    """Current enablement and interval; disabled with the default interval if unreadable."""
    try:
        async with session_factory() as session:
            values = await get_config(session)
    except SQLAlchemyError:
        logger.exception("Failed to read auto-sync settings")
        return AutoSyncStatus(enabled=False, interval=DEFAULT_AUTO_SYNC_INTERVAL)
    return AutoSyncStatus(enabled=values.auto_sync_enabled, interval=values.auto_sync_interval)


async def _sync_queue(
    queue_type: QueueType,
    unc_path: str,
    env: SyncEnvironment,
) -> QueueSyncOutcome:
    try:
        listing = await list_pdf_files(unc_path)
        if listing.success:
            result = await reconcile_files(listing.files, unc_path, queue_type, env)
            logger.info(
                "%s mail sync completed (scanned=%d, success=%s)",
                queue_type.capitalize(),
                len(listing.files),
                result.success,
            )
            return QueueSyncOutcome(
                success=result.success, message=result.message, scanned=len(listing.files)
            )
        message = listing.error or "Failed to list PDF files"
        logger.error("Auto-sync of %s queue (%s) failed: %s", queue_type, unc_path, message)
    except Exception as exc:
        # One queue's failure must not stop the other queue or the scheduler.
        logger.exception("Auto-sync of %s queue (%s) raised", queue_type, unc_path)
        message = str(exc) or "Unknown error"

    await record_sync_attempt(
        env.log_sessions,
        SyncLogParams(
            queue_type=queue_type,
            unc_path=unc_path,
            errors=1,
            status=SyncStatus.ERROR,
            message=message,
        ),
        retention_hours=env.log_retention_hours,
    )
    return QueueSyncOutcome(success=False, message=message, scanned=0)


async def run_auto_sync(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> AutoSyncResult:
    """Reconcile every configured queue if auto-sync is enabled."""
    logger.info("Auto-sync started")
    try:
        async with session_factory() as session:
            values = await get_config(session)
    except SQLAlchemyError:
        logger.exception("Auto-sync failed to load configuration")
        return AutoSyncResult(success=False, message="Failed to load configuration")

    if not values.auto_sync_enabled:
        logger.warning("Auto-sync triggered but disabled")
        return AutoSyncResult(success=False, message="Auto-sync is disabled")

    env = SyncEnvironment.from_settings(values, settings, session_factory)
    result = AutoSyncResult(success=True, message="")
    if values.unc_path_certified:
        result.certified = await _sync_queue(QueueType.CERTIFIED, values.unc_path_certified, env)
    if values.unc_path_regular:
        result.regular = await _sync_queue(QueueType.REGULAR, values.unc_path_regular, env)

    parts: list[str] = []
    if result.certified is not None:
        parts.append(f"Certified: {'OK' if result.certified.success else 'Failed'}")
    if result.regular is not None:
        parts.append(f"Regular: {'OK' if result.regular.success else 'Failed'}")
    result.message = ", ".join(parts) if parts else "No queues configured"
    result.success = all(o.success for o in (result.certified, result.regular) if o is not None)

    logger.info(
        "Auto-sync completed (success=%s): %s (certified scanned=%d, regular scanned=%d)",
        result.success,
        result.message,
        result.certified.scanned if result.certified else 0,
        result.regular.scanned if result.regular else 0,
    )
    return result
