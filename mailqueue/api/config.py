"""Operator configuration endpoints: settings, store and path checks."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mailqueue.api.deps import get_scheduler, get_session, get_settings
from mailqueue.config import Settings
from mailqueue.filesystem.scanner import list_pdf_files
from mailqueue.schemas.config import (
    ConfigResponse,
    ConfigUpdate,
    PathTestRequest,
    PathTestResponse,
    StoreTestRequest,
    StoreTestResponse,
)
from mailqueue.services.config_service import (
    DEFAULT_MYSQL_PORT,
    AppConfigValues,
    StoreConfig,
    get_config,
    save_config,
)
from mailqueue.services.scheduler import AutoSyncScheduler
from mailqueue.services.store_service import check_store_connection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/config", tags=["config"])


def _to_response(values: AppConfigValues) -> ConfigResponse:
    return ConfigResponse(
        unc_path_certified=values.unc_path_certified,
        unc_path_regular=values.unc_path_regular,
        mysql_host=values.mysql_host,
        mysql_port=values.mysql_port,
        mysql_database=values.mysql_database,
        mysql_user=values.mysql_user,
        mysql_password_set=bool(values.mysql_password),
        auto_sync_enabled=values.auto_sync_enabled,
        auto_sync_interval=values.auto_sync_interval,
    )


@router.get("", response_model=ConfigResponse)
async def read_config(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ConfigResponse:
    """Current operator settings."""
    return _to_response(await get_config(session))


@router.put("", response_model=ConfigResponse)
async def update_config(
    body: ConfigUpdate,
    session: Annotated[AsyncSession, Depends(get_session)],
    scheduler: Annotated[AutoSyncScheduler | None, Depends(get_scheduler)],
) -> ConfigResponse:
    """Replace the operator settings and apply auto-sync changes right away."""
    current = await get_config(session)
    values = AppConfigValues(
        unc_path_certified=body.unc_path_certified.strip(),
        unc_path_regular=body.unc_path_regular.strip(),
        mysql_host=body.mysql_host.strip(),
        mysql_port=body.mysql_port or DEFAULT_MYSQL_PORT,
        mysql_database=body.mysql_database.strip(),
        mysql_user=body.mysql_user.strip(),
        mysql_password=(
            current.mysql_password if body.mysql_password is None else body.mysql_password
        ),
        auto_sync_enabled=body.auto_sync_enabled,
        auto_sync_interval=body.auto_sync_interval,
    )
    await save_config(session, values)

    if scheduler is not None:
        await scheduler.reload_settings()
    return _to_response(values)


@router.post("/test-store", response_model=StoreTestResponse)
async def test_store(
    body: StoreTestRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> StoreTestResponse:
    """Try to connect to the mail record store with the given credentials."""
    password = body.password
    if password is None:
        password = (await get_config(session)).mysql_password
    store = StoreConfig(
        host=body.host.strip(),
        port=body.port or DEFAULT_MYSQL_PORT,
        database=body.database.strip(),
        user=body.user.strip(),
        password=password,
        url_override=settings.store_url,
    )
    result = await check_store_connection(
        store, connect_timeout=settings.store_connect_timeout_seconds
    )
    return StoreTestResponse(
        success=result.success,
        message=result.message,
        server_version=result.server_version,
        database=result.database,
    )


@router.post("/test-path", response_model=PathTestResponse)
async def test_path(body: PathTestRequest) -> PathTestResponse:
    """Check that a queue directory is reachable and count its PDFs."""
    result = await list_pdf_files(body.path)
    if not result.success:
        return PathTestResponse(success=False, message=result.error or "Path check failed")
    count = len(result.files)
    return PathTestResponse(
        success=True,
        message=f"Path accessible! Found {count} PDF file(s).",
        pdf_count=count,
    )
