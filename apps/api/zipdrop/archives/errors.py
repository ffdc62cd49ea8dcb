"""Exceptions raised by the archive builder and registry.

Build failures derive from BuildError and retrieval failures from
RetrieveError, so the HTTP layer can map each family to a status code
without knowing every leaf.
"""

from typing import Optional


class ArchiveError(Exception):
    """Base class for all staging and retrieval failures."""


class BuildError(ArchiveError):
    """Staging failed; no artifact was published."""


class CapacityExceeded(BuildError):
    """The upload is larger than the configured ceiling."""

    def __init__(self, limit: int, attempted: int) -> None:
        self.limit = limit
        self.attempted = attempted
        super().__init__(
            f"Total upload size {attempted} bytes exceeds the limit of {limit} bytes"
        )


class EntryWriteFailed(BuildError):
    """An entry could not be opened, read, or written into the archive."""

    def __init__(self, name: str, reason: Optional[str] = None) -> None:
        self.name = name
        message = f"Failed to add {name!r} to the archive"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FinalizeFailed(BuildError):
    """The archive's central directory could not be written."""


class RetrieveError(ArchiveError):
    """A claim did not produce a readable archive."""


class ArchiveNotFound(RetrieveError):
    """The name is unknown, was never published, or was already claimed."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No staged archive named {name!r}")


class StorageUnavailable(RetrieveError):
    """The claim succeeded but the archive file could not be read.

    The registry record is gone and the file has been scheduled for
    deletion; retrying with the same name yields ArchiveNotFound.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Staged archive {name!r} could not be read")
