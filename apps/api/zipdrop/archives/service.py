"""Staging and retrieval operations used by the HTTP layer.

    stage_archive(registry, entries, size_limit)  -> artifact name
    retrieve_archive(registry, name)              -> (stream, total length)

Both are synchronous and do blocking file I/O; async callers run them in
a worker thread. Neither retries: failures propagate to the caller as
BuildError / RetrieveError subclasses.
"""

import logging
from typing import Optional, Sequence

from zipdrop.archives.builder import build_archive
from zipdrop.archives.registry import ArchiveRegistry, ClaimedArchive
from zipdrop.archives.types import UploadEntry

logger = logging.getLogger(__name__)


def stage_archive(
    registry: ArchiveRegistry,
    entries: Sequence[UploadEntry],
    size_limit: int,
    *,
    scratch_dir: Optional[str] = None,
) -> str:
    """Build an archive from `entries` and publish it under a new name.

    A name is only returned once the archive is finalized and registered;
    a failed build publishes nothing.
    """
    staged = build_archive(entries, size_limit, scratch_dir=scratch_dir)
    return registry.publish(staged)


def retrieve_archive(
    registry: ArchiveRegistry,
    name: str,
) -> tuple[ClaimedArchive, int]:
    """Claim the archive published as `name`.

    The caller must drain or close the returned stream; either one deletes
    the archive. The length is the archive's exact size in bytes, suitable
    for a Content-Length header.
    """
    claimed = registry.claim(name)
    return claimed, claimed.size_bytes
