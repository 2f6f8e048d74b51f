"""Configuration, connection-test and auto-sync schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ConfigResponse(BaseModel):
    """Operator settings. The store password is never returned."""

    unc_path_certified: str
    unc_path_regular: str
    mysql_host: str
    mysql_port: str
    mysql_database: str
    mysql_user: str
    mysql_password_set: bool
    auto_sync_enabled: bool
    auto_sync_interval: int


class ConfigUpdate(BaseModel):
    """Request to replace the operator settings.

    Omitting ``mysql_password`` keeps the stored password.
    """

    unc_path_certified: str = Field(default="", max_length=512)
    unc_path_regular: str = Field(default="", max_length=512)
    mysql_host: str = Field(default="", max_length=255)
    mysql_port: str = Field(default="3306", pattern=r"^\d{1,5}$")
    mysql_database: str = Field(default="", max_length=64)
    mysql_user: str = Field(default="", max_length=255)
    mysql_password: str | None = Field(default=None, max_length=255)
    auto_sync_enabled: bool = False
    auto_sync_interval: int = Field(default=5, ge=1, le=1440)


class StoreTestRequest(BaseModel):
    """Store credentials to try. An omitted password falls back to the stored one."""

    host: str = Field(default="", max_length=255)
    port: str = Field(default="3306", pattern=r"^\d{1,5}$")
    database: str = Field(default="", max_length=64)
    user: str = Field(default="", max_length=255)
    password: str | None = Field(default=None, max_length=255)


class StoreTestResponse(BaseModel):
    success: bool
    message: str
    server_version: str | None = None
    database: str | None = None


class PathTestRequest(BaseModel):
    path: str = Field(max_length=512)


class PathTestResponse(BaseModel):
    success: bool
    message: str
    pdf_count: int | None = None


class AutoSyncStatusResponse(BaseModel):
    """Stored auto-sync settings and the scheduler's live state."""

    enabled: bool
    interval: int
    scheduler_state: str
    syncing: bool


class QueueSyncOutcomeResponse(BaseModel):
    success: bool
    message: str
    scanned: int


class AutoSyncRunResponse(BaseModel):
    success: bool
    message: str
    certified: QueueSyncOutcomeResponse | None = None
    regular: QueueSyncOutcomeResponse | None = None
