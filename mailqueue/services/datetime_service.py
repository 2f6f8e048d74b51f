"""Datetime helpers: UTC now and strict ISO output."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def now_utc() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(UTC)


def hours_ago(hours: float, *, now: datetime | None = None) -> datetime:
    """Return the UTC instant ``hours`` before ``now`` (default: current time)."""
    return (now or now_utc()) - timedelta(hours=hours)


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_iso(dt: datetime) -> str:
    """Format datetime as ISO 8601 for JSON serialization."""
    return as_utc(dt).isoformat()
