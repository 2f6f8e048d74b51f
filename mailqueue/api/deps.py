"""Shared API dependencies: settings, DB sessions, scheduler, sync environment."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailqueue.config import Settings
from mailqueue.services.config_service import get_config
from mailqueue.services.reconcile_service import SyncEnvironment
from mailqueue.services.scheduler import AutoSyncScheduler


def get_settings(request: Request) -> Settings:
    """Get application settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Get the local database session factory from app state."""
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    return session_factory


async def get_session(request: Request) -> AsyncGenerator[AsyncSession]:
    """Get a database session."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


def get_scheduler(request: Request) -> AutoSyncScheduler | None:
    """Get the auto-sync scheduler, or None when it was not started."""
    scheduler: AutoSyncScheduler | None = getattr(request.app.state, "scheduler", None)
    return scheduler


async def get_sync_environment(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> SyncEnvironment:
    """Build the reconciliation environment from the stored configuration."""
    values = await get_config(session)
    return SyncEnvironment.from_settings(values, settings, session_factory)
