"""Access to the mail record store: upsert, delete, lookups and connection checks."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, select, text
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from mailqueue.database import create_store_engine, init_store_schema
from mailqueue.exceptions import ConfigMissingError, StoreError, StoreErrorKind
from mailqueue.models.mail import MailQueueFile
from mailqueue.services.store_errors import classify_store_error

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Iterable

    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from mailqueue.services.config_service import StoreConfig

logger = logging.getLogger(__name__)

STORE_CONFIG_MISSING_MESSAGE = (
    "Database is not configured. Please set the MySQL host, database and user in settings."
)

# Keeps IN (...) lists well below driver parameter limits.
_DELETE_CHUNK_SIZE = 500

SUPPORTED_DIALECTS = frozenset({"mysql", "mariadb", "sqlite", "postgresql"})

_KEY_COLUMNS = ("unc_path", "filename")
UPDATABLE_COLUMNS: tuple[str, ...] = (
    "queue_type",
    "mail_type",
    "username",
    "display_name",
    "created_date",
    "created_time",
    "file_size",
    "file_modified_at",
    "is_small_file",
    "synced_at",
)


@dataclass
class StoreCheckResult:
    """Outcome of a store connection test."""

    success: bool
    message: str
    server_version: str | None = None
    database: str | None = None


@asynccontextmanager
async def open_store(
    store: StoreConfig,
    *,
    connect_timeout: int,
    create_schema: bool = False,
) -> AsyncGenerator[AsyncEngine]:
    """Yield an engine for the store; it is always disposed on exit.

    Raises ``ConfigMissingError`` before any I/O when credentials are incomplete
    and ``StoreError`` when the URL names a dialect the upsert cannot target.
    """
    if not store.is_complete:
        raise ConfigMissingError(STORE_CONFIG_MISSING_MESSAGE)
    engine = create_store_engine(store.url(), connect_timeout)
    try:
        if engine.dialect.name not in SUPPORTED_DIALECTS:
            raise StoreError(
                StoreErrorKind.UNKNOWN, f"Unsupported store dialect: {engine.dialect.name}"
            )
        if create_schema:
            await init_store_schema(engine)
        yield engine
    finally:
        await engine.dispose()


def upsert_statement(dialect_name: str, values: dict[str, Any]) -> Any:
    """Build an insert-or-update keyed on ``(unc_path, filename)`` for the dialect."""
    table = MailQueueFile.__table__
    if dialect_name in {"mysql", "mariadb"}:
        mysql_stmt = mysql.insert(table).values(**values)
        return mysql_stmt.on_duplicate_key_update(
            {col: mysql_stmt.inserted[col] for col in UPDATABLE_COLUMNS}
        )
    if dialect_name == "sqlite":
        sqlite_stmt = sqlite.insert(table).values(**values)
        return sqlite_stmt.on_conflict_do_update(
            index_elements=list(_KEY_COLUMNS),
            set_={col: sqlite_stmt.excluded[col] for col in UPDATABLE_COLUMNS},
        )
    if dialect_name == "postgresql":
        pg_stmt = postgresql.insert(table).values(**values)
        return pg_stmt.on_conflict_do_update(
            index_elements=list(_KEY_COLUMNS),
            set_={col: pg_stmt.excluded[col] for col in UPDATABLE_COLUMNS},
        )
    raise ValueError(f"Unsupported store dialect: {dialect_name}")


async def fetch_filenames(conn: AsyncConnection, unc_path: str) -> set[str]:
    """Filenames currently persisted for ``unc_path``."""
    result = await conn.execute(
        select(MailQueueFile.filename).where(MailQueueFile.unc_path == unc_path)
    )
    return set(result.scalars().all())


async def upsert_record(conn: AsyncConnection, values: dict[str, Any]) -> None:
    await conn.execute(upsert_statement(conn.dialect.name, values))


async def delete_records(conn: AsyncConnection, unc_path: str, filenames: Iterable[str]) -> int:
    """Delete the given filenames for ``unc_path``. Returns rows deleted."""
    names = sorted(filenames)
    deleted = 0
    for start in range(0, len(names), _DELETE_CHUNK_SIZE):
        chunk = names[start : start + _DELETE_CHUNK_SIZE]
        result = await conn.execute(
            delete(MailQueueFile).where(
                MailQueueFile.unc_path == unc_path,
                MailQueueFile.filename.in_(chunk),
            )
        )
        deleted += result.rowcount or 0
    return deleted


async def file_exists(
    filename: str,
    unc_path: str,
    store: StoreConfig,
    *,
    connect_timeout: int,
) -> bool:
    """Whether ``filename`` is a persisted record of ``unc_path``.

    Any store problem counts as "not found" so callers fail closed.
    """
    try:
        async with open_store(store, connect_timeout=connect_timeout) as engine:
            async with engine.connect() as conn:
                count = await conn.scalar(
                    select(func.count())
                    .select_from(MailQueueFile)
                    .where(
                        MailQueueFile.unc_path == unc_path,
                        MailQueueFile.filename == filename,
                    )
                )
    except ConfigMissingError:
        logger.warning("File lookup for %s skipped: store not configured", filename)
        return False
    except (SQLAlchemyError, OSError, StoreError) as exc:
        logger.error("File lookup for %s failed: %s", filename, exc)
        return False
    return bool(count)


async def check_store_connection(store: StoreConfig, *, connect_timeout: int) -> StoreCheckResult:
    """Connect to the store and report its server version."""
    if not store.is_complete:
        return StoreCheckResult(
            success=False,
            message="Please fill in all required fields (host, database, user)",
        )

    try:
        async with open_store(store, connect_timeout=connect_timeout) as engine:
            async with engine.connect() as conn:
                if conn.dialect.name == "sqlite":
                    version = await conn.scalar(text("SELECT sqlite_version()"))
                else:
                    version = await conn.scalar(text("SELECT VERSION()"))
    except (SQLAlchemyError, OSError, StoreError) as exc:
        error = classify_store_error(exc, store)
        logger.warning("Store connection test failed (%s): %s", error.kind, exc)
        return StoreCheckResult(success=False, message=error.message)

    return StoreCheckResult(
        success=True,
        message="Connection successful!",
        server_version=str(version) if version is not None else "Unknown",
        database=store.database or None,
    )
