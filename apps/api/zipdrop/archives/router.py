"""Archive endpoints.

  POST /compress                 stage uploaded files as one ZIP archive
  POST /filename                 preview the names of selected files
  GET  /download/{artifact_name} download a staged archive, exactly once

Staging runs in a worker thread because it streams every upload through
zlib onto disk. The download response streams the claimed archive and
deletes it once the body has been sent or the client has gone away.
"""

import asyncio
import logging
from typing import BinaryIO, Callable, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from zipdrop.archives.errors import (
    ArchiveNotFound,
    BuildError,
    CapacityExceeded,
    EntryWriteFailed,
    StorageUnavailable,
)
from zipdrop.archives.naming import is_artifact_name, normalise_entry_names
from zipdrop.archives.registry import ArchiveRegistry
from zipdrop.archives.schemas import SelectedFilesResponse, StageArchiveResponse
from zipdrop.archives.service import retrieve_archive, stage_archive
from zipdrop.archives.types import UploadEntry
from zipdrop.core.config import Settings, get_settings
from zipdrop.core.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["archives"])

settings = get_settings()

# The preview lists every name up to this many files, then the first
# PREVIEW_SHOWN followed by a count of the rest.
PREVIEW_ALL_UP_TO = 6
PREVIEW_SHOWN = 5


def get_registry(request: Request) -> ArchiveRegistry:
    """FastAPI dependency: the registry created by `create_app()`."""
    return request.app.state.archive_registry


def _upload_opener(upload: UploadFile) -> Callable[[], BinaryIO]:
    return lambda: upload.file


@router.post(
    "/compress",
    response_model=StageArchiveResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.upload_rate_limit)
async def compress_files(
    request: Request,
    files: Optional[list[UploadFile]] = File(None),
    config: Settings = Depends(get_settings),
    registry: ArchiveRegistry = Depends(get_registry),
) -> StageArchiveResponse:
    """Pack the uploaded files into a ZIP and return its one-time name."""
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No files selected",
        )

    try:
        names = normalise_entry_names(upload.filename or "" for upload in files)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    entries = [
        UploadEntry(name=name, size=upload.size or 0, opener=_upload_opener(upload))
        for name, upload in zip(names, files)
    ]
    logger.info("Processing %d files", len(entries))

    try:
        artifact_name = await asyncio.to_thread(
            stage_archive,
            registry,
            entries,
            config.max_upload_bytes,
            scratch_dir=config.scratch_dir,
        )
    except CapacityExceeded as exc:
        logger.info("Upload rejected: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Total file size too large (max {exc.limit} bytes)",
        ) from exc
    except EntryWriteFailed as exc:
        logger.error("Error adding %s to archive: %s", exc.name, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error adding {exc.name} to archive",
        ) from exc
    except BuildError as exc:
        logger.error("Error building archive: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error finalizing archive",
        ) from exc

    if len(entries) == 1:
        message = "File successfully compressed!"
    else:
        message = f"{len(entries)} files successfully compressed!"

    return StageArchiveResponse(
        artifact_name=artifact_name,
        download_url=f"/download/{artifact_name}",
        file_count=len(entries),
        message=message,
    )


@router.post("/filename", response_model=SelectedFilesResponse)
async def preview_filenames(
    files: Optional[list[UploadFile]] = File(None),
) -> SelectedFilesResponse:
    """List the names of the selected files without staging anything."""
    names = [upload.filename or "" for upload in files or []]
    if len(names) > PREVIEW_ALL_UP_TO:
        return SelectedFilesResponse(
            count=len(names),
            names=names[:PREVIEW_SHOWN],
            truncated=len(names) - PREVIEW_SHOWN,
        )
    return SelectedFilesResponse(count=len(names), names=names)


@router.get("/download/{artifact_name}")
async def download_archive(
    artifact_name: str,
    registry: ArchiveRegistry = Depends(get_registry),
) -> StreamingResponse:
    """Stream a staged archive and delete it afterwards.

    The name stops working the moment this handler claims it, whether or
    not the transfer completes.
    """
    logger.info("Download requested for: %s", artifact_name)

    if not is_artifact_name(artifact_name):
        logger.info("Rejecting malformed artifact name: %r", artifact_name)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found or expired",
        )

    try:
        claimed, length = await asyncio.to_thread(retrieve_archive, registry, artifact_name)
    except ArchiveNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found or expired",
        ) from exc
    except StorageUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error accessing file",
        ) from exc

    return StreamingResponse(
        claimed.iter_chunks(),
        media_type="application/zip",
        headers={
            "Content-Length": str(length),
            "Content-Disposition": f'attachment; filename="{artifact_name}"',
        },
        background=BackgroundTask(claimed.release),
    )
