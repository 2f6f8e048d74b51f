"""PDF listing, sync and file-serving endpoints."""

from __future__ import annotations

import asyncio
import logging
import ntpath
import os
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailqueue.api.deps import (
    get_session,
    get_session_factory,
    get_settings,
    get_sync_environment,
)
from mailqueue.config import Settings
from mailqueue.exceptions import ScanErrorKind
from mailqueue.filesystem.scanner import SCAN_ERROR_MESSAGES, ScannedFile, list_pdf_files
from mailqueue.schemas.pdf import (
    PdfListResponse,
    QueueTypeLiteral,
    ScannedFileSchema,
    SyncRequest,
    SyncResponse,
)
from mailqueue.services.config_service import get_config
from mailqueue.services.display_name_service import format_display_name
from mailqueue.services.reconcile_service import (
    SyncEnvironment,
    reconcile_files,
    verify_file_in_store,
)

if TYPE_CHECKING:
    from mailqueue.filesystem.scanner import PdfListResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pdf", tags=["pdf"])

_PDF_CACHE_CONTROL = "private, max-age=300"


def _to_schema(file: ScannedFile) -> ScannedFileSchema:
    return ScannedFileSchema(
        name=file.name,
        size=file.size,
        modified_at=file.modified_at,
        mail_type=file.mail_type,
        user=file.user,
        created_date=file.created_date,
        created_time=file.created_time,
        is_small_file=file.is_small_file,
        raw_filename=file.raw_filename or file.name,
        display_name=format_display_name(file.user),
    )


def _from_schema(file: ScannedFileSchema) -> ScannedFile:
    return ScannedFile(
        name=file.name,
        size=file.size,
        modified_at=file.modified_at,
        mail_type=file.mail_type,
        user=file.user,
        created_date=file.created_date,
        created_time=file.created_time,
        is_small_file=file.is_small_file,
        raw_filename=file.raw_filename or file.name,
    )


def _to_list_response(result: PdfListResult) -> PdfListResponse:
    return PdfListResponse(
        success=result.success,
        files=[_to_schema(f) for f in result.files],
        path=result.path,
        error=result.error,
        error_kind=str(result.error_kind) if result.error_kind else None,
        sample_filenames=result.sample_filenames,
    )


def _validate_filename(filename: str) -> str:
    """Reject anything but a bare ``.pdf`` name, raising 400."""
    if (
        not filename
        or ".." in filename
        or "/" in filename
        or "\\" in filename
        or os.path.isabs(filename)
        or ntpath.isabs(filename)
    ):
        raise HTTPException(status_code=400, detail="Invalid filename")
    if not filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files can be served")
    return filename


@router.get("/list", response_model=PdfListResponse)
async def list_pdfs(
    path: Annotated[str, Query(max_length=512)] = "",
) -> PdfListResponse:
    """List the PDFs in a queue directory."""
    if not path.strip():
        raise HTTPException(
            status_code=400, detail=SCAN_ERROR_MESSAGES[ScanErrorKind.INVALID_PATH]
        )
    result = await list_pdf_files(path)
    return _to_list_response(result)


@router.post("/sync", response_model=SyncResponse)
async def sync_pdfs(
    body: SyncRequest,
    env: Annotated[SyncEnvironment, Depends(get_sync_environment)],
) -> SyncResponse:
    """Reconcile a listing of one queue directory against the mail record store."""
    unc_path = body.unc_path.strip()
    if not unc_path:
        raise HTTPException(
            status_code=400, detail=SCAN_ERROR_MESSAGES[ScanErrorKind.INVALID_PATH]
        )

    files = [_from_schema(f) for f in body.files]
    result = await reconcile_files(files, unc_path, body.queue_type, env)
    return SyncResponse(
        success=result.success,
        status=str(result.status),
        message=result.message,
        files_scanned=result.files_scanned,
        inserted=result.inserted,
        updated=result.updated,
        deleted=result.deleted,
        errors=result.errors,
        error_kind=result.error_kind,
    )


@router.get("/{filename}")
async def get_pdf(
    filename: str,
    queue: Annotated[QueueTypeLiteral, Query()],
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    download: bool = False,
) -> FileResponse:
    """Serve a PDF from a queue directory.

    Only files the last sync persisted for that queue's path are served, so
    the endpoint cannot be used to read arbitrary files from the share.
    """
    _validate_filename(filename)

    values = await get_config(session)
    unc_path = values.unc_path_for(queue)
    if not unc_path:
        raise HTTPException(status_code=400, detail=f"No path configured for {queue} mail")

    env = SyncEnvironment.from_settings(values, settings, session_factory)
    if not await verify_file_in_store(filename, unc_path, env):
        logger.warning("Refused to serve %s: not a known record of %s", filename, unc_path)
        raise HTTPException(status_code=404, detail="File not found")

    file_path = os.path.join(unc_path, filename)
    if not await asyncio.to_thread(os.path.isfile, file_path):
        logger.warning("Known record %s is missing from %s", filename, unc_path)
        raise HTTPException(status_code=404, detail="File not found on disk")

    return FileResponse(
        file_path,
        media_type="application/pdf",
        filename=filename,
        content_disposition_type="attachment" if download else "inline",
        headers={"Cache-Control": _PDF_CACHE_CONTROL},
    )
