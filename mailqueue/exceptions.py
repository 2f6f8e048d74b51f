"""Application-level exception types.

Convention:
- ``InternalServerError``: for errors whose details must never reach clients.
  The global handler logs the full message at ERROR and returns a generic
  "Internal server error" (500) to the client.
- ``ValueError``: for validation errors that are safe to forward to clients.
  The global ``ValueError`` handler returns ``str(exc)`` as the 422 detail.
- ``ScanError`` / ``StoreError``: categorized failures raised inside the
  scanner and the reconciliation engine. The public service functions catch
  them and turn them into result objects, so they only reach the HTTP layer
  through a service's ``error`` field.
"""

from __future__ import annotations

from enum import StrEnum


class InternalServerError(Exception):
    """Raised for internal errors whose details must not be exposed to clients.

    The global exception handler in ``mailqueue/main.py`` catches this, logs
    the full message server-side, and returns HTTP 500 with a generic
    ``"Internal server error"`` detail.
    """


class ConfigMissingError(Exception):
    """Required configuration (store credentials, queue path) is not set."""


class ScanErrorKind(StrEnum):
    """Category of a directory scan failure."""

    INVALID_PATH = "invalid_path"
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    NOT_A_DIRECTORY = "not_a_directory"
    UNKNOWN = "unknown"


class ScanError(Exception):
    """Directory scan failed; ``kind`` tells the caller why."""

    def __init__(self, kind: ScanErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class StoreErrorKind(StrEnum):
    """Category of a mail record store failure."""

    CONNECTION_REFUSED = "connection_refused"
    HOST_NOT_FOUND = "host_not_found"
    ACCESS_DENIED = "access_denied"
    UNKNOWN_DATABASE = "unknown_database"
    UNKNOWN_TABLE = "unknown_table"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class StoreError(Exception):
    """Mail record store failure with a user-facing message."""

    def __init__(self, kind: StoreErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
