"""Health check endpoint."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from mailqueue.api.deps import get_session, get_settings
from mailqueue.config import Settings
from mailqueue.services.config_service import StoreConfig, get_config
from mailqueue.services.store_service import check_store_connection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    store: str


@router.get("/api/health", response_model=HealthResponse)
async def health_check(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Health check endpoint for monitoring and load balancers.

    ``store`` is ``not_configured`` until credentials are saved; that alone
    does not degrade the overall status.
    """
    db_status = "ok"
    store_status = "not_configured"
    try:
        await session.execute(text("SELECT 1"))
        values = await get_config(session)
    except Exception:
        logger.warning("Health check database query failed", exc_info=True)
        db_status = "error"
    else:
        store = StoreConfig.from_values(values, settings)
        if store.is_complete:
            check = await check_store_connection(
                store, connect_timeout=settings.store_connect_timeout_seconds
            )
            store_status = "ok" if check.success else "error"

    healthy = db_status == "ok" and store_status != "error"
    return HealthResponse(
        status="ok" if healthy else "degraded",
        version="0.1.0",
        database=db_status,
        store=store_status,
    )
