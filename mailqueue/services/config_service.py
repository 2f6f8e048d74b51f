"""Operator-editable configuration persisted as key-value rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote_plus

from sqlalchemy import select

from mailqueue.models.config import AppConfig
from mailqueue.services.datetime_service import format_iso, now_utc

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from mailqueue.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MYSQL_PORT = "3306"
DEFAULT_AUTO_SYNC_INTERVAL = 5


class ConfigKey:
    """Keys of the ``app_config`` table."""

    UNC_PATH = "unc_path"  # legacy single-queue path, read as the certified path
    UNC_PATH_CERTIFIED = "unc_path_certified"
    UNC_PATH_REGULAR = "unc_path_regular"
    MYSQL_HOST = "mysql_host"
    MYSQL_PORT = "mysql_port"
    MYSQL_DATABASE = "mysql_database"
    MYSQL_USER = "mysql_user"
    MYSQL_PASSWORD = "mysql_password"
    AUTO_SYNC_ENABLED = "auto_sync_enabled"
    AUTO_SYNC_INTERVAL = "auto_sync_interval"


@dataclass
class AppConfigValues:
    """Full set of operator settings."""

    unc_path_certified: str = ""
    unc_path_regular: str = ""
    mysql_host: str = ""
    mysql_port: str = DEFAULT_MYSQL_PORT
    mysql_database: str = ""
    mysql_user: str = ""
    mysql_password: str = ""
    auto_sync_enabled: bool = False
    auto_sync_interval: int = DEFAULT_AUTO_SYNC_INTERVAL

    def unc_path_for(self, queue_type: str) -> str:
        """Configured directory for ``queue_type`` ("certified" or "regular")."""
        if queue_type == "certified":
            return self.unc_path_certified
        if queue_type == "regular":
            return self.unc_path_regular
        raise ValueError(f"Invalid queue type: {queue_type}")


@dataclass(frozen=True)
class StoreConfig:
    """Connection parameters for the mail record store.

    ``url_override`` (from the ``STORE_URL`` setting) takes precedence over the
    MySQL credentials and is how non-MySQL stores are configured.
    """

    host: str = ""
    port: str = DEFAULT_MYSQL_PORT
    database: str = ""
    user: str = ""
    password: str = ""
    url_override: str = ""

    @classmethod
    def from_values(cls, values: AppConfigValues, settings: Settings) -> StoreConfig:
        return cls(
            host=values.mysql_host,
            port=values.mysql_port or DEFAULT_MYSQL_PORT,
            database=values.mysql_database,
            user=values.mysql_user,
            password=values.mysql_password,
            url_override=settings.store_url,
        )

    @property
    def is_complete(self) -> bool:
        if self.url_override:
            return True
        return bool(self.host and self.database and self.user)

    @property
    def port_number(self) -> int:
        try:
            return int(self.port)
        except ValueError:
            return int(DEFAULT_MYSQL_PORT)

    def url(self) -> str:
        """SQLAlchemy URL for the store."""
        if self.url_override:
            return self.url_override
        return (
            f"mysql+aiomysql://{quote_plus(self.user)}:{quote_plus(self.password)}"
            f"@{self.host}:{self.port_number}/{quote_plus(self.database)}"
        )


def _parse_interval(raw: str | None) -> int:
    if not raw:
        return DEFAULT_AUTO_SYNC_INTERVAL
    try:
        interval = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid auto-sync interval %r", raw)
        return DEFAULT_AUTO_SYNC_INTERVAL
    return max(interval, 1)


async def _load_values(session: AsyncSession) -> dict[str, str | None]:
    result = await session.execute(select(AppConfig.key, AppConfig.value))
    return {key: value for key, value in result.all()}


async def get_config(session: AsyncSession) -> AppConfigValues:
    """Read all settings, falling back to defaults for missing keys."""
    raw = await _load_values(session)

    def value(key: str) -> str:
        return raw.get(key) or ""

    return AppConfigValues(
        unc_path_certified=value(ConfigKey.UNC_PATH_CERTIFIED) or value(ConfigKey.UNC_PATH),
        unc_path_regular=value(ConfigKey.UNC_PATH_REGULAR),
        mysql_host=value(ConfigKey.MYSQL_HOST),
        mysql_port=value(ConfigKey.MYSQL_PORT) or DEFAULT_MYSQL_PORT,
        mysql_database=value(ConfigKey.MYSQL_DATABASE),
        mysql_user=value(ConfigKey.MYSQL_USER),
        mysql_password=value(ConfigKey.MYSQL_PASSWORD),
        auto_sync_enabled=value(ConfigKey.AUTO_SYNC_ENABLED) == "true",
        auto_sync_interval=_parse_interval(raw.get(ConfigKey.AUTO_SYNC_INTERVAL)),
    )


async def set_config_value(session: AsyncSession, key: str, value: str) -> None:
    """Insert or update one setting. Does not commit."""
    timestamp = format_iso(now_utc())
    row = await session.scalar(select(AppConfig).where(AppConfig.key == key))
    if row is None:
        session.add(AppConfig(key=key, value=value, created_at=timestamp, updated_at=timestamp))
    else:
        row.value = value
        row.updated_at = timestamp


async def save_config(session: AsyncSession, values: AppConfigValues) -> None:
    """Persist every setting in one commit."""
    if values.auto_sync_interval < 1:
        raise ValueError("Auto-sync interval must be at least 1 minute")

    pairs = {
        ConfigKey.UNC_PATH_CERTIFIED: values.unc_path_certified,
        ConfigKey.UNC_PATH_REGULAR: values.unc_path_regular,
        ConfigKey.MYSQL_HOST: values.mysql_host,
        ConfigKey.MYSQL_PORT: values.mysql_port,
        ConfigKey.MYSQL_DATABASE: values.mysql_database,
        ConfigKey.MYSQL_USER: values.mysql_user,
        ConfigKey.MYSQL_PASSWORD: values.mysql_password,
        ConfigKey.AUTO_SYNC_ENABLED: "true" if values.auto_sync_enabled else "false",
        ConfigKey.AUTO_SYNC_INTERVAL: str(values.auto_sync_interval),
    }
    for key, value in pairs.items():
        await set_config_value(session, key, value)
    await session.commit()
    logger.info(
        "Configuration saved (auto_sync_enabled=%s, interval=%d min)",
        values.auto_sync_enabled,
        values.auto_sync_interval,
    )
