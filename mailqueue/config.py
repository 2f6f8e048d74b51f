"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Mail queue dashboard settings.

    Operator-editable values (UNC paths, store credentials, auto-sync) are kept
    in the ``app_config`` table instead; see ``mailqueue.services.config_service``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False
    expose_docs: bool = False

    # Local database (configuration and sync log)
    database_url: str = "sqlite+aiosqlite:///data/db/mailqueue.db"

    # Mail record store. When empty, the URL is built from the stored MySQL credentials.
    store_url: str = ""
    store_connect_timeout_seconds: int = Field(default=10, ge=1)
    store_create_schema: bool = False

    # Sync log
    sync_log_retention_hours: int = Field(default=24, ge=1)
    sync_log_default_limit: int = Field(default=100, ge=1, le=1000)

    # Auto-sync
    auto_sync_on_startup: bool = True
    auto_sync_settings_poll_seconds: float = Field(default=30.0, gt=0)

    # Paths
    frontend_dir: Path = Path("./frontend/dist")

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    # CORS
    cors_origins: list[str] = Field(default_factory=list)
    trusted_hosts: list[str] = Field(default_factory=list)
