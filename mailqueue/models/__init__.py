"""SQLAlchemy ORM models for the mail queue dashboard."""

from mailqueue.models.base import Base, StoreBase
from mailqueue.models.config import AppConfig
from mailqueue.models.mail import MailQueueFile
from mailqueue.models.sync_log import SyncLog

__all__ = [
    "AppConfig",
    "Base",
    "MailQueueFile",
    "StoreBase",
    "SyncLog",
]
