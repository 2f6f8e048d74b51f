"""Tests for store error classification."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from mailqueue.exceptions import StoreError, StoreErrorKind
from mailqueue.services.config_service import StoreConfig
from mailqueue.services.store_errors import (
    STORE_ERROR_RULES,
    StoreErrorRule,
    classify_kind,
    classify_store_error,
)

STORE = StoreConfig(host="db.internal", port="3306", database="mail", user="me")


class _DriverError(Exception):
    """Mimics PyMySQL errors, whose args are (code, message)."""


def _wrapped(code: int, message: str) -> OperationalError:
    return OperationalError("SELECT 1", {}, _DriverError(code, message))


class TestClassifyKind:
    @pytest.mark.parametrize(
        ("code", "kind"),
        [
            (2003, StoreErrorKind.CONNECTION_REFUSED),
            (2002, StoreErrorKind.CONNECTION_REFUSED),
            (2005, StoreErrorKind.HOST_NOT_FOUND),
            (1045, StoreErrorKind.ACCESS_DENIED),
            (1044, StoreErrorKind.ACCESS_DENIED),
            (1049, StoreErrorKind.UNKNOWN_DATABASE),
            (1146, StoreErrorKind.UNKNOWN_TABLE),
        ],
    )
    def test_mysql_error_codes(self, code: int, kind: StoreErrorKind) -> None:
        assert classify_kind(_wrapped(code, "driver said no")) is kind

    def test_name_resolution_reported_as_2003(self) -> None:
        exc = _wrapped(
            2003, "Can't connect to MySQL server on 'nope' ([Errno -2] Name or service not known)"
        )
        assert classify_kind(exc) is StoreErrorKind.HOST_NOT_FOUND

    @pytest.mark.parametrize(
        ("message", "kind"),
        [
            ("connect ECONNREFUSED 10.0.0.1:3306", StoreErrorKind.CONNECTION_REFUSED),
            ("getaddrinfo ENOTFOUND db", StoreErrorKind.HOST_NOT_FOUND),
            ("Connection timed out", StoreErrorKind.TIMEOUT),
            ("no such table: mail_queue_files", StoreErrorKind.UNKNOWN_TABLE),
            ("unable to open database file", StoreErrorKind.UNKNOWN_DATABASE),
        ],
    )
    def test_message_substrings(self, message: str, kind: StoreErrorKind) -> None:
        exc = ProgrammingError("SELECT 1", {}, Exception(message))
        assert classify_kind(exc) is kind

    def test_unrecognized(self) -> None:
        assert classify_kind(Exception("something odd")) is StoreErrorKind.UNKNOWN

    def test_rules_are_extensible(self, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = StoreErrorRule(StoreErrorKind.TIMEOUT, codes=frozenset({9999}))
        rules = [custom, *STORE_ERROR_RULES]
        monkeypatch.setattr("mailqueue.services.store_errors.STORE_ERROR_RULES", rules)
        assert classify_kind(_wrapped(9999, "custom")) is StoreErrorKind.TIMEOUT


class TestClassifyStoreError:
    def test_connection_refused_message(self) -> None:
        error = classify_store_error(_wrapped(2003, "refused"), STORE)
        assert error.kind is StoreErrorKind.CONNECTION_REFUSED
        assert error.message == (
            "Cannot connect to MySQL server at db.internal:3306. Is the server running?"
        )

    def test_unknown_database_message(self) -> None:
        error = classify_store_error(_wrapped(1049, "Unknown database 'mail'"), STORE)
        assert error.message == 'Database "mail" does not exist.'

    def test_access_denied_message(self) -> None:
        error = classify_store_error(_wrapped(1045, "Access denied for user"), STORE)
        assert error.message == "Access denied. Please check your username and password."

    def test_timeout_error(self) -> None:
        error = classify_store_error(TimeoutError(), STORE)
        assert error.kind is StoreErrorKind.TIMEOUT

    def test_unknown_keeps_driver_message(self) -> None:
        error = classify_store_error(_wrapped(1213, "Deadlock found"), STORE)
        assert error.kind is StoreErrorKind.UNKNOWN
        assert "Deadlock found" in error.message

    def test_store_error_passes_through(self) -> None:
        original = StoreError(StoreErrorKind.ACCESS_DENIED, "nope")
        assert classify_store_error(original, STORE) is original
