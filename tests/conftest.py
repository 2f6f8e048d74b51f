"""Shared test fixtures for the mail queue dashboard."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mailqueue.config import Settings
from mailqueue.database import create_store_engine, init_store_schema
from mailqueue.main import build_scheduler, create_app
from mailqueue.models import Base
from mailqueue.services.config_service import StoreConfig
from mailqueue.services.reconcile_service import SyncEnvironment

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

# Filenames in the format the scanning stations produce.
SAMPLE_FILENAMES = (
    "MailCert_Jennifer.Ruiz_20260209-155008-01.pdf",
    "MailCert_Andriana.Morris_20260210-10393801.pdf",
    "MailReg_rejana.macdonald_20260208-090000.pdf",
)


def write_pdf(directory: Path, name: str, size: int = 6000) -> Path:
    """Write a dummy PDF of ``size`` bytes into ``directory``."""
    path = directory / name
    path.write_bytes(b"%PDF-1.4\n" + b"0" * max(size - 9, 0))
    return path


@asynccontextmanager
async def create_test_client(settings: Settings) -> AsyncGenerator[AsyncClient]:
    """Create an HTTP test client with a fully initialized app.

    Manually performs the work of the application lifespan (DB schema,
    scheduler wiring) because ASGITransport does not trigger it. The
    scheduler is wired but not started.
    """
    from mailqueue.database import create_engine as create_db_engine

    app = create_app(settings)

    engine, session_factory = create_db_engine(settings)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.settings = settings

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.scheduler = build_scheduler(session_factory, settings)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    await app.state.scheduler.stop()
    await engine.dispose()


@pytest.fixture
def queue_dir(tmp_path: Path) -> Path:
    """Empty directory standing in for a mail queue share."""
    directory = tmp_path / "queue"
    directory.mkdir()
    return directory


@pytest.fixture
def store_url(tmp_path: Path) -> str:
    """SQLite file standing in for the MySQL mail record store."""
    return f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"


@pytest.fixture
def test_settings(tmp_path: Path, store_url: str) -> Settings:
    """Create test settings with temporary paths."""
    db_path = tmp_path / "test.db"
    return Settings(
        _env_file=None,
        debug=True,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        store_url=store_url,
        store_create_schema=True,
        auto_sync_on_startup=False,
        frontend_dir=tmp_path / "frontend",
    )


@pytest.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine with the local schema."""
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def store_engine(store_url: str) -> AsyncGenerator[AsyncEngine]:
    """Engine on the test store with ``mail_queue_files`` created."""
    engine = create_store_engine(store_url, connect_timeout=5)
    await init_store_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sync_env(
    store_url: str,
    store_engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
) -> SyncEnvironment:
    """Reconciliation environment pointing at the test store and local DB."""
    return SyncEnvironment(
        store=StoreConfig(url_override=store_url),
        log_sessions=session_factory,
        connect_timeout=5,
    )
