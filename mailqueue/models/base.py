"""Declarative bases for the local database and the mail record store."""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base for tables in the local database (configuration, sync log)."""


class StoreBase(DeclarativeBase):
    """Base for tables in the mail record store.

    Kept on separate metadata so that creating the local schema never touches
    the external store.
    """
