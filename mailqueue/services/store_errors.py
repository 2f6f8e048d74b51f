"""Best-effort classification of store driver errors into ``StoreErrorKind``.

Driver messages and codes vary between MySQL/MariaDB versions and drivers, so
the mapping is a plain table: add a ``StoreErrorRule`` when a new failure mode
shows up instead of adding branches to the reconciliation code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from mailqueue.exceptions import StoreError, StoreErrorKind

if TYPE_CHECKING:
    from mailqueue.services.config_service import StoreConfig


@dataclass(frozen=True)
class StoreErrorRule:
    """Maps driver error codes and/or message substrings to a kind."""

    kind: StoreErrorKind
    codes: frozenset[int] = frozenset()
    substrings: tuple[str, ...] = ()


# First match wins. Name-resolution failures arrive as MySQL 2003 as well, so
# the hostname rule must come before the refused-connection rule.
STORE_ERROR_RULES: list[StoreErrorRule] = [
    StoreErrorRule(
        StoreErrorKind.HOST_NOT_FOUND,
        codes=frozenset({2005}),
        substrings=(
            "enotfound",
            "name or service not known",
            "nodename nor servname",
            "getaddrinfo failed",
            "unknown mysql server host",
            "temporary failure in name resolution",
        ),
    ),
    StoreErrorRule(
        StoreErrorKind.TIMEOUT,
        substrings=("etimedout", "timed out", "timeout"),
    ),
    StoreErrorRule(
        StoreErrorKind.CONNECTION_REFUSED,
        codes=frozenset({2002, 2003}),
        substrings=("econnrefused", "connection refused", "can't connect"),
    ),
    StoreErrorRule(
        StoreErrorKind.ACCESS_DENIED,
        codes=frozenset({1044, 1045, 1698}),
        substrings=("access denied",),
    ),
    StoreErrorRule(
        StoreErrorKind.UNKNOWN_DATABASE,
        codes=frozenset({1049}),
        substrings=("unknown database", "unable to open database file"),
    ),
    StoreErrorRule(
        StoreErrorKind.UNKNOWN_TABLE,
        codes=frozenset({1146}),
        substrings=("doesn't exist", "no such table"),
    ),
]

_MESSAGE_TEMPLATES: dict[StoreErrorKind, str] = {
    StoreErrorKind.CONNECTION_REFUSED: (
        "Cannot connect to MySQL server at {host}:{port}. Is the server running?"
    ),
    StoreErrorKind.HOST_NOT_FOUND: 'Host "{host}" not found. Please check the hostname.',
    StoreErrorKind.ACCESS_DENIED: "Access denied. Please check your username and password.",
    StoreErrorKind.UNKNOWN_DATABASE: 'Database "{database}" does not exist.',
    StoreErrorKind.UNKNOWN_TABLE: "The mail queue table does not exist in the database.",
    StoreErrorKind.TIMEOUT: "Connection timed out. Please check the host and port.",
}


def _error_code(exc: BaseException) -> int | None:
    """Driver error code, unwrapping SQLAlchemy's ``DBAPIError.orig``."""
    for candidate in (getattr(exc, "orig", None), exc):
        args = getattr(candidate, "args", ())
        if args and isinstance(args[0], int):
            return args[0]
    return None


def classify_kind(exc: BaseException) -> StoreErrorKind:
    """Return the first matching kind for ``exc``, or ``UNKNOWN``."""
    code = _error_code(exc)
    text = str(exc).lower()
    orig = getattr(exc, "orig", None)
    if orig is not None:
        text = f"{text} {orig}".lower()
    for rule in STORE_ERROR_RULES:
        if code is not None and code in rule.codes:
            return rule.kind
        if any(s in text for s in rule.substrings):
            return rule.kind
    return StoreErrorKind.UNKNOWN


def classify_store_error(exc: BaseException, store: StoreConfig) -> StoreError:
    """Wrap ``exc`` in a ``StoreError`` carrying a user-facing message."""
    if isinstance(exc, StoreError):
        return exc
    if isinstance(exc, TimeoutError):
        kind = StoreErrorKind.TIMEOUT
    else:
        kind = classify_kind(exc)
    template = _MESSAGE_TEMPLATES.get(kind)
    if template is None:
        orig = getattr(exc, "orig", None)
        message = str(orig or exc) or "Database operation failed"
    else:
        message = template.format(host=store.host, port=store.port, database=store.database)
    return StoreError(kind, message)
