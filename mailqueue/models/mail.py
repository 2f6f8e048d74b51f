"""Mail queue record model (lives in the mail record store)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mailqueue.models.base import StoreBase


class MailQueueFile(StoreBase):
    """One PDF known to be present in a queue directory.

    Rows are owned by the reconciliation engine: inserted on first sighting,
    rewritten on every later sighting and deleted once the file disappears.
    """

    __tablename__ = "mail_queue_files"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    unc_path: Mapped[str] = mapped_column(String(512), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    queue_type: Mapped[str] = mapped_column(String(16), nullable=False)
    mail_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    created_time: Mapped[str | None] = mapped_column(String(8), nullable=True)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    file_modified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_small_file: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    synced_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("unc_path", "filename", name="uq_mail_queue_files_path_name"),
        Index("idx_mail_queue_files_unc_path", "unc_path"),
    )
