"""Auto-sync status and manual trigger endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailqueue.api.deps import get_scheduler, get_session_factory, get_settings
from mailqueue.config import Settings
from mailqueue.schemas.config import (
    AutoSyncRunResponse,
    AutoSyncStatusResponse,
    QueueSyncOutcomeResponse,
)
from mailqueue.services.auto_sync_service import (
    QueueSyncOutcome,
    get_auto_sync_status,
    run_auto_sync,
)
from mailqueue.services.scheduler import AutoSyncScheduler, SchedulerState

router = APIRouter(prefix="/api/auto-sync", tags=["auto-sync"])


def _outcome(outcome: QueueSyncOutcome | None) -> QueueSyncOutcomeResponse | None:
    if outcome is None:
        return None
    return QueueSyncOutcomeResponse(
        success=outcome.success, message=outcome.message, scanned=outcome.scanned
    )


@router.get("/status", response_model=AutoSyncStatusResponse)
async def auto_sync_status(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    scheduler: Annotated[AutoSyncScheduler | None, Depends(get_scheduler)],
) -> AutoSyncStatusResponse:
    """Stored auto-sync settings plus whether a scheduled sync is running."""
    status = await get_auto_sync_status(session_factory)
    return AutoSyncStatusResponse(
        enabled=status.enabled,
        interval=status.interval,
        scheduler_state=str(scheduler.state if scheduler else SchedulerState.UNINITIALIZED),
        syncing=scheduler.is_syncing if scheduler else False,
    )


@router.post("/run", response_model=AutoSyncRunResponse)
async def auto_sync_run(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AutoSyncRunResponse:
    """Run one auto-sync pass now and wait for the result."""
    result = await run_auto_sync(session_factory, settings)
    return AutoSyncRunResponse(
        success=result.success,
        message=result.message,
        certified=_outcome(result.certified),
        regular=_outcome(result.regular),
    )
