"""Archive staging and single-use retrieval.

Public API:
    stage_archive(registry, entries, size_limit) -> artifact name
    retrieve_archive(registry, name) -> (ClaimedArchive, length)
    ArchiveRegistry, UploadEntry
"""

from zipdrop.archives.registry import ArchiveRegistry, ClaimedArchive
from zipdrop.archives.service import retrieve_archive, stage_archive
from zipdrop.archives.types import StagedArchive, UploadEntry

__all__ = [
    "ArchiveRegistry",
    "ClaimedArchive",
    "StagedArchive",
    "UploadEntry",
    "retrieve_archive",
    "stage_archive",
]
