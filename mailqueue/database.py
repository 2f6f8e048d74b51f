"""Database engine and session management.

Two databases are involved: the local database (configuration and sync log)
and the mail record store, usually an external MySQL server whose
credentials are edited at runtime.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mailqueue.models.base import StoreBase

if TYPE_CHECKING:
    from mailqueue.config import Settings


def create_engine(
    settings: Settings,
) -> tuple[
    AsyncEngine,
    async_sessionmaker[AsyncSession],
]:
    """Create async engine and session factory for the local database.

    Returns (engine, session_factory) tuple.
    """
    engine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, session_factory


def create_store_engine(store_url: str, connect_timeout: int) -> AsyncEngine:
    """Create an engine for the mail record store.

    The connect timeout bounds connection establishment only; queries and
    transactions run without a timeout.
    """
    url = make_url(store_url)
    connect_args: dict[str, Any] = {}
    backend = url.get_backend_name()
    if backend == "mysql":
        connect_args["connect_timeout"] = connect_timeout
    elif backend in {"sqlite", "postgresql"}:
        connect_args["timeout"] = connect_timeout
    engine = create_async_engine(url, connect_args=connect_args, pool_pre_ping=True)
    if backend == "sqlite":
        _enable_sqlite_savepoints(engine)
    return engine


async def init_store_schema(engine: AsyncEngine) -> None:
    """Create the mail record table if it does not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(StoreBase.metadata.create_all)


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINTs nest inside the outer transaction.

    The sqlite3 driver otherwise defers BEGIN until the first DML statement,
    which turns the first SAVEPOINT into the outer transaction.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")
