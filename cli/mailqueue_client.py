"""Command-line client for the mail queue dashboard API."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any
from urllib.parse import urlparse

try:
    import httpx
except ImportError:
    print("Error: httpx is required. Install with: pip install httpx")
    sys.exit(1)

DEFAULT_SERVER = "http://localhost:8000"
SERVER_ENV_VAR = "MAILQUEUE_SERVER"
QUEUE_TYPES = ("certified", "regular")
_LOCALHOST_HOSTS = {"localhost", "127.0.0.1", "::1"}


class MailQueueClient:
    """Thin wrapper over the dashboard's HTTP API."""

    def __init__(self, server_url: str, *, timeout: float = 120.0) -> None:
        self.server_url = server_url.rstrip("/")
        self.client = httpx.Client(base_url=self.server_url, timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> MailQueueClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def list_files(self, path: str) -> dict[str, Any]:
        """List the PDFs in a queue directory."""
        resp = self.client.get("/api/pdf/list", params={"path": path})
        resp.raise_for_status()
        result: dict[str, Any] = resp.json()
        return result

    def queue_path(self, queue_type: str) -> str:
        """Configured directory for a queue, or an empty string."""
        resp = self.client.get("/api/config")
        resp.raise_for_status()
        path: str = resp.json().get(f"unc_path_{queue_type}", "")
        return path

    def sync_queue(self, queue_type: str) -> dict[str, Any]:
        """List the configured directory of a queue and reconcile it."""
        if queue_type not in QUEUE_TYPES:
            raise ValueError(f"Invalid queue type: {queue_type}")
        path = self.queue_path(queue_type)
        if not path:
            raise ValueError(f"No path configured for {queue_type} mail")

        listing = self.list_files(path)
        if not listing.get("success"):
            raise ValueError(listing.get("error") or "Failed to list PDF files")

        resp = self.client.post(
            "/api/pdf/sync",
            json={"files": listing["files"], "unc_path": path, "queue_type": queue_type},
        )
        resp.raise_for_status()
        result: dict[str, Any] = resp.json()
        return result

    def sync_logs(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Recent sync log entries, newest first."""
        params = {"limit": limit} if limit is not None else None
        resp = self.client.get("/api/sync-log", params=params)
        resp.raise_for_status()
        entries: list[dict[str, Any]] = resp.json()["entries"]
        return entries

    def auto_sync_status(self) -> dict[str, Any]:
        resp = self.client.get("/api/auto-sync/status")
        resp.raise_for_status()
        result: dict[str, Any] = resp.json()
        return result

    def run_auto_sync(self) -> dict[str, Any]:
        resp = self.client.post("/api/auto-sync/run")
        resp.raise_for_status()
        result: dict[str, Any] = resp.json()
        return result


def validate_server_url(server_url: str, allow_insecure_http: bool = False) -> str:
    """Validate server URL and enforce HTTPS for non-localhost hosts by default."""
    normalized = server_url.strip().rstrip("/")
    parsed = urlparse(normalized)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError("Server URL must include scheme and host (e.g. https://example.com)")

    hostname = parsed.hostname
    if parsed.scheme == "http" and not allow_insecure_http and hostname not in _LOCALHOST_HOSTS:
        raise ValueError(
            "HTTPS is required for non-localhost servers. "
            "Use --allow-insecure-http only on trusted networks."
        )

    return normalized


def format_size(size: int) -> str:
    """Human-readable file size."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def print_listing(listing: dict[str, Any]) -> None:
    files = listing.get("files", [])
    print(f"{len(files)} PDF file(s) in {listing.get('path')}")
    for f in files:
        when = f"{f.get('created_date') or '?'} {f.get('created_time') or ''}".strip()
        who = f.get("display_name") or f.get("user") or "-"
        flag = "  [small]" if f.get("is_small_file") else ""
        print(f"  {when:19}  {who:24}  {format_size(f['size']):>9}  {f['name']}{flag}")


def print_sync_result(queue_type: str, result: dict[str, Any]) -> None:
    print(f"{queue_type.capitalize()}: [{result['status']}] {result['message']}")


def print_logs(entries: list[dict[str, Any]]) -> None:
    if not entries:
        print("No sync log entries in the last 24 hours")
        return
    for entry in entries:
        print(
            f"{entry['synced_at']}  {entry['queue_type']:9}  {entry['status']:7}  "
            f"+{entry['files_added']} ~{entry['files_updated']} -{entry['files_deleted']} "
            f"!{entry['errors']}  {entry.get('message') or ''}"
        )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="mailqueue-client",
        description="Inspect mail queue folders and trigger syncs on a dashboard server",
    )
    parser.add_argument(
        "--server",
        "-s",
        default=os.environ.get(SERVER_ENV_VAR, DEFAULT_SERVER),
        help=f"Server URL (default: ${SERVER_ENV_VAR} or {DEFAULT_SERVER})",
    )
    parser.add_argument(
        "--allow-insecure-http",
        action="store_true",
        help="Allow http:// server URLs for non-localhost hosts",
    )

    subparsers = parser.add_subparsers(dest="command")
    list_parser = subparsers.add_parser("list", help="List the PDFs in a directory")
    list_parser.add_argument("path", help="Queue directory (local or UNC path)")
    sync_parser = subparsers.add_parser("sync", help="Sync a configured queue now")
    sync_parser.add_argument("queue", choices=[*QUEUE_TYPES, "all"])
    logs_parser = subparsers.add_parser("logs", help="Show recent sync log entries")
    logs_parser.add_argument("--limit", "-n", type=int, default=None)
    subparsers.add_parser("auto-sync", help="Run one auto-sync pass now")
    subparsers.add_parser("status", help="Show auto-sync status")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    try:
        server_url = validate_server_url(args.server, args.allow_insecure_http)
    except ValueError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    ok = True
    with MailQueueClient(server_url) as client:
        try:
            if args.command == "list":
                listing = client.list_files(args.path)
                if listing.get("success"):
                    print_listing(listing)
                else:
                    print(f"Error: {listing.get('error')}")
                    ok = False
            elif args.command == "sync":
                queues = QUEUE_TYPES if args.queue == "all" else (args.queue,)
                for queue_type in queues:
                    try:
                        result = client.sync_queue(queue_type)
                    except ValueError as exc:
                        print(f"{queue_type.capitalize()}: {exc}")
                        ok = False
                        continue
                    print_sync_result(queue_type, result)
                    ok = ok and bool(result.get("success"))
            elif args.command == "logs":
                print_logs(client.sync_logs(args.limit))
            elif args.command == "auto-sync":
                result = client.run_auto_sync()
                print(result["message"])
                ok = bool(result.get("success"))
            elif args.command == "status":
                status = client.auto_sync_status()
                state = "enabled" if status["enabled"] else "disabled"
                print(f"Auto-sync {state}, every {status['interval']} minute(s)")
                print(f"Scheduler: {status['scheduler_state']}")
        except httpx.HTTPStatusError as exc:
            print(f"Error: server returned {exc.response.status_code}: {exc.response.text}")
            ok = False
        except httpx.HTTPError as exc:
            print(f"Error: could not reach {server_url}: {exc}")
            ok = False

    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
