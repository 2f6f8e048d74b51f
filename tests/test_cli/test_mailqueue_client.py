"""Tests for the command-line client."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from cli.mailqueue_client import MailQueueClient, format_size, main, validate_server_url

LISTING = {
    "success": True,
    "path": "/srv/mail/certified",
    "files": [
        {
            "name": "MailCert_Jennifer.Ruiz_20260209-155008-01.pdf",
            "size": 6000,
            "modified_at": "2026-02-09T15:50:08Z",
            "mail_type": "MailCert",
            "user": "Jennifer.Ruiz",
            "created_date": "2026-02-09",
            "created_time": "15:50:08",
            "is_small_file": False,
            "raw_filename": "MailCert_Jennifer.Ruiz_20260209-155008-01.pdf",
            "display_name": "Jennifer Ruiz",
        }
    ],
    "error": None,
    "error_kind": None,
    "sample_filenames": ["MailCert_Jennifer.Ruiz_20260209-155008-01.pdf"],
}

SYNC_RESULT = {
    "success": True,
    "status": "success",
    "message": "Synced 1 file(s): 1 added, 0 updated, 0 removed",
    "files_scanned": 1,
    "inserted": 1,
    "updated": 0,
    "deleted": 0,
    "errors": 0,
    "error_kind": None,
}


def _client_with(handler: Any) -> MailQueueClient:
    client = MailQueueClient("http://localhost:8000")
    client.client.close()
    client.client = httpx.Client(
        base_url="http://localhost:8000", transport=httpx.MockTransport(handler)
    )
    return client


class TestValidateServerUrl:
    def test_rejects_insecure_http_for_remote_hosts(self) -> None:
        with pytest.raises(ValueError, match="HTTPS is required"):
            validate_server_url("http://example.com")

    def test_allows_https_for_remote_hosts(self) -> None:
        assert validate_server_url("https://example.com/") == "https://example.com"

    def test_allows_http_for_localhost(self) -> None:
        assert validate_server_url("http://localhost:8000") == "http://localhost:8000"

    def test_allows_insecure_http_when_flag_enabled(self) -> None:
        assert (
            validate_server_url("http://example.com:8000", allow_insecure_http=True)
            == "http://example.com:8000"
        )

    def test_requires_scheme(self) -> None:
        with pytest.raises(ValueError, match="scheme and host"):
            validate_server_url("example.com")


class TestMailQueueClient:
    def test_sync_queue_lists_then_posts(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/api/config":
                return httpx.Response(200, json={"unc_path_certified": "/srv/mail/certified"})
            if request.url.path == "/api/pdf/list":
                return httpx.Response(200, json=LISTING)
            return httpx.Response(200, json=SYNC_RESULT)

        with _client_with(handler) as client:
            result = client.sync_queue("certified")

        assert result["inserted"] == 1
        assert [r.url.path for r in requests] == ["/api/config", "/api/pdf/list", "/api/pdf/sync"]
        assert requests[1].url.params["path"] == "/srv/mail/certified"
        body = json.loads(requests[2].content)
        assert body["queue_type"] == "certified"
        assert body["unc_path"] == "/srv/mail/certified"
        assert body["files"] == LISTING["files"]

    def test_sync_queue_without_configured_path(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unc_path_regular": ""})

        with _client_with(handler) as client, pytest.raises(ValueError, match="No path"):
            client.sync_queue("regular")

    def test_sync_queue_listing_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/config":
                return httpx.Response(200, json={"unc_path_certified": "/gone"})
            return httpx.Response(
                200, json={"success": False, "error": "Path not found or not accessible"}
            )

        with _client_with(handler) as client, pytest.raises(ValueError, match="Path not found"):
            client.sync_queue("certified")

    def test_invalid_queue(self) -> None:
        with _client_with(lambda r: httpx.Response(500)) as client:
            with pytest.raises(ValueError, match="Invalid queue type"):
                client.sync_queue("express")

    def test_sync_logs_passes_limit(self) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json={"entries": []})

        with _client_with(handler) as client:
            assert client.sync_logs(5) == []
        assert seen == {"limit": "5"}

    def test_http_errors_raise(self) -> None:
        with _client_with(lambda r: httpx.Response(503)) as client:
            with pytest.raises(httpx.HTTPStatusError):
                client.run_auto_sync()


class TestFormatSize:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [(999, "999 B"), (4999, "4.9 KB"), (3 * 1024 * 1024, "3.0 MB")],
    )
    def test_units(self, size: int, expected: str) -> None:
        assert format_size(size) == expected


class TestMain:
    def test_list_prints_files(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.object(MailQueueClient, "list_files", return_value=LISTING):
            main(["list", "/srv/mail/certified"])
        out = capsys.readouterr().out
        assert "1 PDF file(s) in /srv/mail/certified" in out
        assert "Jennifer Ruiz" in out

    def test_list_failure_exits_nonzero(self, capsys: pytest.CaptureFixture[str]) -> None:
        failure = {"success": False, "error": "Access denied to the specified path"}
        with (
            patch.object(MailQueueClient, "list_files", return_value=failure),
            pytest.raises(SystemExit) as excinfo,
        ):
            main(["list", "/srv/locked"])
        assert excinfo.value.code == 1
        assert "Access denied" in capsys.readouterr().out

    def test_sync_all_reports_each_queue(self, capsys: pytest.CaptureFixture[str]) -> None:
        def fake_sync(self: MailQueueClient, queue_type: str) -> dict[str, Any]:
            if queue_type == "regular":
                raise ValueError("No path configured for regular mail")
            return SYNC_RESULT

        with (
            patch.object(MailQueueClient, "sync_queue", fake_sync),
            pytest.raises(SystemExit),
        ):
            main(["sync", "all"])
        out = capsys.readouterr().out
        assert "Certified: [success] Synced 1 file(s)" in out
        assert "Regular: No path configured for regular mail" in out

    def test_rejects_insecure_remote_server(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            main(["--server", "http://example.com", "logs"])
        assert "HTTPS is required" in capsys.readouterr().out

    def test_unreachable_server(self, capsys: pytest.CaptureFixture[str]) -> None:
        error = httpx.ConnectError("connection refused")
        with (
            patch.object(MailQueueClient, "run_auto_sync", side_effect=error),
            pytest.raises(SystemExit),
        ):
            main(["auto-sync"])
        assert "could not reach" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        main([])
        assert "usage: mailqueue-client" in capsys.readouterr().out
