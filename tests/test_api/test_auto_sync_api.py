"""Tests for the auto-sync endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from mailqueue.services.config_service import AppConfigValues, save_config
from tests.conftest import SAMPLE_FILENAMES, create_test_client, write_pdf

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from httpx import AsyncClient

    from mailqueue.config import Settings


@pytest.fixture
async def client(test_settings: Settings) -> AsyncGenerator[AsyncClient]:
    async with create_test_client(test_settings) as ac:
        yield ac


async def _save(settings: Settings, values: AppConfigValues) -> None:
    engine = create_async_engine(settings.database_url)
    try:
        async with async_sessionmaker(engine, class_=AsyncSession)() as session:
            await save_config(session, values)
    finally:
        await engine.dispose()


class TestAutoSyncEndpoints:
    async def test_status_defaults(self, client: AsyncClient) -> None:
        resp = await client.get("/api/auto-sync/status")
        assert resp.status_code == 200
        assert resp.json() == {
            "enabled": False,
            "interval": 5,
            "scheduler_state": "uninitialized",
            "syncing": False,
        }

    async def test_run_when_disabled(self, client: AsyncClient) -> None:
        resp = await client.post("/api/auto-sync/run")
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is False
        assert data["message"] == "Auto-sync is disabled"

    async def test_run_syncs_configured_queue(
        self, client: AsyncClient, test_settings: Settings, queue_dir: Path
    ) -> None:
        for name in SAMPLE_FILENAMES:
            write_pdf(queue_dir, name)
        # Saved directly so the (unstarted) scheduler does not react to the change.
        await _save(
            test_settings,
            AppConfigValues(unc_path_certified=str(queue_dir), auto_sync_enabled=True),
        )

        resp = await client.post("/api/auto-sync/run")

        data = resp.json()
        assert data["success"] is True
        assert data["message"] == "Certified: OK"
        assert data["certified"]["scanned"] == 3
        assert data["regular"] is None

        logs = (await client.get("/api/sync-log")).json()["entries"]
        assert logs
        assert all(e["queue_type"] == "certified" for e in logs)
