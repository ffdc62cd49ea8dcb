"""Archive builder: packs uploaded files into one ZIP on scratch storage.

Entries are streamed into the archive in fixed-size chunks, in input
order, one source stream at a time. The builder enforces the size ceiling
twice: once against the declared sizes before touching the disk, and again
against the bytes it actually copies, since declared sizes come from the
transport and are not trusted.

Any failure removes the partially written scratch file before the
exception leaves this module, so a failed build never leaves anything
behind for the registry to find.
"""

import logging
import os
import zipfile
from typing import IO, Optional, Sequence

from zipdrop.archives.errors import (
    BuildError,
    CapacityExceeded,
    EntryWriteFailed,
    FinalizeFailed,
)
from zipdrop.archives.naming import base_name_for
from zipdrop.archives.storage import allocate_scratch, remove_scratch
from zipdrop.archives.types import StagedArchive, UploadEntry

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def build_archive(
    entries: Sequence[UploadEntry],
    size_limit: int,
    *,
    scratch_dir: Optional[str] = None,
) -> StagedArchive:
    """Write `entries` into a new ZIP archive and return its location.

    Members are named after each entry's display name, verbatim. The
    returned archive is finalized and closed; nothing can be appended.

    Raises:
        CapacityExceeded: Declared or copied bytes exceed `size_limit`.
        EntryWriteFailed: An entry could not be opened, read, or written.
        FinalizeFailed: The central directory could not be written.
        BuildError: No scratch file could be allocated.
    """
    declared = sum(entry.size for entry in entries)
    if declared > size_limit:
        logger.info(
            "Rejecting upload of %d bytes (limit %d) before writing",
            declared, size_limit,
        )
        raise CapacityExceeded(size_limit, declared)

    try:
        scratch = allocate_scratch(scratch_dir)
    except OSError as exc:
        raise BuildError(f"Could not allocate scratch file: {exc}") from exc

    path = scratch.name
    logger.info("Building archive of %d entries at %s", len(entries), path)

    try:
        with scratch:
            written = _write_entries(scratch, entries, size_limit)
        try:
            size_bytes = os.path.getsize(path)
        except OSError as exc:
            raise FinalizeFailed(f"Could not measure finished archive: {exc}") from exc
    except BaseException:
        remove_scratch(path)
        raise

    logger.info(
        "Archive built: %d entries, %d bytes in, %d bytes out (%s)",
        len(entries), written, size_bytes, path,
    )
    return StagedArchive(
        path=path,
        size_bytes=size_bytes,
        base_name=base_name_for([entry.name for entry in entries]),
        entry_count=len(entries),
    )


def _write_entries(
    scratch: IO[bytes],
    entries: Sequence[UploadEntry],
    size_limit: int,
) -> int:
    """Stream every entry into the archive and write the central directory.

    The central directory is only written once every entry has been copied.
    If an entry fails, the archive is discarded and the entry's error is
    the one that propagates.

    Returns the number of uncompressed bytes copied.
    """
    # zipfile needs to know up front whether a member may exceed 2 GiB.
    force_zip64 = size_limit > zipfile.ZIP64_LIMIT

    written = 0
    archive = zipfile.ZipFile(scratch, mode="w", compression=zipfile.ZIP_DEFLATED)
    try:
        for index, entry in enumerate(entries, start=1):
            logger.debug("Adding entry %d/%d: %s", index, len(entries), entry.name)
            written = _write_entry(archive, entry, written, size_limit, force_zip64)
    except BaseException:
        _discard(archive)
        raise

    try:
        archive.close()
    except OSError as exc:
        raise FinalizeFailed(f"Failed to finalize archive: {exc}") from exc
    return written


def _discard(archive: zipfile.ZipFile) -> None:
    """Close a partial archive whose scratch file is about to be removed."""
    try:
        archive.close()
    except OSError as exc:
        logger.warning("Error closing discarded archive: %s", exc)


def _write_entry(
    archive: zipfile.ZipFile,
    entry: UploadEntry,
    written: int,
    size_limit: int,
    force_zip64: bool,
) -> int:
    """Copy one entry into the archive, closing its source on every path.

    `written` is the running total before this entry; the updated total is
    returned. A source that is already closed or otherwise unreadable
    surfaces as ValueError from the io layer and is reported like any other
    read failure.
    """
    try:
        source = entry.opener()
    except (OSError, ValueError) as exc:
        raise EntryWriteFailed(entry.name, str(exc)) from exc

    try:
        with source, archive.open(entry.name, mode="w", force_zip64=force_zip64) as member:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > size_limit:
                    raise CapacityExceeded(size_limit, written)
                member.write(chunk)
    except (OSError, ValueError) as exc:
        raise EntryWriteFailed(entry.name, str(exc)) from exc

    return written
