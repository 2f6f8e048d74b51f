"""Directory scanner for mail queue folders (local paths or UNC shares)."""

from __future__ import annotations

import asyncio
import functools
import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime

from mailqueue.exceptions import ScanError, ScanErrorKind
from mailqueue.filesystem.filename import parse_pdf_filename

logger = logging.getLogger(__name__)

# Scans below this size are usually blank or corrupt pages.
SMALL_FILE_THRESHOLD = 5000

_SAMPLE_FILENAME_COUNT = 3

SCAN_ERROR_MESSAGES: dict[ScanErrorKind, str] = {
    ScanErrorKind.INVALID_PATH: "Please enter a UNC path",
    ScanErrorKind.NOT_FOUND: "Path not found or not accessible",
    ScanErrorKind.ACCESS_DENIED: "Access denied to the specified path",
    ScanErrorKind.NOT_A_DIRECTORY: "The specified path is not a directory",
}


@dataclass
class ScannedFile:
    """A PDF found in a queue directory."""

    name: str
    size: int
    modified_at: datetime
    mail_type: str | None = None
    user: str | None = None
    created_date: str | None = None
    created_time: str | None = None
    is_small_file: bool = False
    raw_filename: str = ""


@dataclass
class PdfListResult:
    """Outcome of listing a queue directory."""

    success: bool
    files: list[ScannedFile] = field(default_factory=list)
    path: str | None = None
    error: str | None = None
    error_kind: ScanErrorKind | None = None
    sample_filenames: list[str] = field(default_factory=list)


def compare_scanned_files(a: ScannedFile, b: ScannedFile) -> int:
    """Newest first by created date, then time; otherwise by name.

    Whenever either side lacks a parsed date the comparison falls through to
    the filename, so unparseable files are not pinned to either end.
    """
    if a.created_date and b.created_date:
        if a.created_date != b.created_date:
            return -1 if a.created_date > b.created_date else 1
        if a.created_time and b.created_time and a.created_time != b.created_time:
            return -1 if a.created_time > b.created_time else 1
    if a.name == b.name:
        return 0
    return -1 if a.name < b.name else 1


def _scan_error_from_os_error(exc: OSError) -> ScanError:
    if isinstance(exc, FileNotFoundError):
        kind = ScanErrorKind.NOT_FOUND
    elif isinstance(exc, PermissionError):
        kind = ScanErrorKind.ACCESS_DENIED
    elif isinstance(exc, NotADirectoryError):
        kind = ScanErrorKind.NOT_A_DIRECTORY
    else:
        return ScanError(ScanErrorKind.UNKNOWN, str(exc) or "Unknown error occurred")
    return ScanError(kind, SCAN_ERROR_MESSAGES[kind])


def scan_pdf_directory(path: str) -> list[ScannedFile]:
    """List the PDFs directly inside ``path``, parsed and sorted.

    Subdirectories and non-PDF files are ignored. Raises ``ScanError`` when
    the path is blank, missing, unreadable or not a directory.
    """
    normalized = path.strip() if path else ""
    if not normalized:
        raise ScanError(
            ScanErrorKind.INVALID_PATH, SCAN_ERROR_MESSAGES[ScanErrorKind.INVALID_PATH]
        )

    try:
        if not os.path.isdir(normalized):
            os.stat(normalized)
            raise ScanError(
                ScanErrorKind.NOT_A_DIRECTORY,
                SCAN_ERROR_MESSAGES[ScanErrorKind.NOT_A_DIRECTORY],
            )

        files: list[ScannedFile] = []
        with os.scandir(normalized) as entries:
            for entry in entries:
                if not entry.name.lower().endswith(".pdf") or not entry.is_file():
                    continue
                try:
                    stat = entry.stat()
                except FileNotFoundError:
                    # Picked up or moved between listing and stat.
                    logger.warning("PDF disappeared during scan: %s", entry.path)
                    continue

                parsed = parse_pdf_filename(entry.name)
                files.append(
                    ScannedFile(
                        name=entry.name,
                        size=stat.st_size,
                        modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                        mail_type=parsed.mail_type,
                        user=parsed.user,
                        created_date=parsed.created_date,
                        created_time=parsed.created_time,
                        is_small_file=stat.st_size < SMALL_FILE_THRESHOLD,
                        raw_filename=entry.name,
                    )
                )
    except OSError as exc:
        raise _scan_error_from_os_error(exc) from exc

    files.sort(key=functools.cmp_to_key(compare_scanned_files))
    return files


async def list_pdf_files(path: str) -> PdfListResult:
    """Scan ``path`` off the event loop and report the outcome as a result."""
    normalized = path.strip() if path else ""
    try:
        files = await asyncio.to_thread(scan_pdf_directory, normalized)
    except ScanError as exc:
        logger.info("Listing %r failed: %s", normalized, exc.message)
        return PdfListResult(
            success=False,
            path=normalized or None,
            error=exc.message,
            error_kind=exc.kind,
        )

    logger.debug("Listed %d PDF(s) in %s", len(files), normalized)
    return PdfListResult(
        success=True,
        files=files,
        path=normalized,
        sample_filenames=[f.name for f in files[:_SAMPLE_FILENAME_COUNT]],
    )
