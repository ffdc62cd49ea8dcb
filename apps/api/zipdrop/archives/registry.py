"""Single-use registry of staged archives.

The registry maps a public artifact name to the scratch file holding the
archive. Each name can be claimed exactly once:

  publish(staged)  → name   insert under the lock; no I/O
  claim(name)      → stream pop under the lock; open/delete outside it

The lock only ever guards dictionary mutation. Opening and deleting files
happens after it is released, so a slow disk never stalls unrelated
publish or claim calls.

Once a claim has popped a record, deleting the file is the job of the
returned `ClaimedArchive` (or of `claim()` itself if the open fails).
"""

from __future__ import annotations

import logging
import threading
from typing import IO, Callable, Iterator, Optional

from zipdrop.archives.errors import ArchiveNotFound, StorageUnavailable
from zipdrop.archives.naming import make_artifact_name
from zipdrop.archives.storage import open_scratch, remove_scratch
from zipdrop.archives.types import StagedArchive

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class ClaimedArchive:
    """A claimed archive's byte stream, deleted once it is done with.

    The scratch file is closed and removed exactly once, on whichever
    comes first:
      - iteration or `read()` reaching end of file
      - an error while reading (re-raised as StorageUnavailable)
      - `release()` / `close()`, or leaving a `with` block

    Safe to release from a different thread than the one reading.
    """

    def __init__(self, name: str, stream: IO[bytes], staged: StagedArchive) -> None:
        self.name = name
        self._stream = stream
        self._staged = staged
        self._release_lock = threading.Lock()
        self._released = False

    @property
    def size_bytes(self) -> int:
        return self._staged.size_bytes

    @property
    def released(self) -> bool:
        return self._released

    def read(self, size: int = -1) -> bytes:
        if self._released:
            return b""
        try:
            data = self._stream.read(size)
        except (OSError, ValueError) as exc:
            self.release()
            raise StorageUnavailable(self.name) from exc
        if not data and size != 0:
            self.release()
        return data

    def iter_chunks(self, chunk_size: int = READ_CHUNK_SIZE) -> Iterator[bytes]:
        try:
            while True:
                chunk = self.read(chunk_size)
                if not chunk:
                    return
                yield chunk
        finally:
            self.release()

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_chunks()

    def release(self) -> None:
        with self._release_lock:
            if self._released:
                return
            self._released = True

        try:
            self._stream.close()
        except OSError as exc:
            logger.warning("Error closing archive %s: %s", self.name, exc)
        remove_scratch(self._staged.path)
        logger.info("Released archive %s", self.name)

    close = release

    def __enter__(self) -> "ClaimedArchive":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class ArchiveRegistry:
    """Thread-safe, single-use mapping of artifact names to staged archives.

    One instance is created per application and shared by all request
    handlers; tests create as many independent instances as they need.

    Parameters
    ----------
    name_factory:
        Builds a candidate name from a base name. Defaults to
        `make_artifact_name`; tests inject deterministic factories to
        exercise collision handling.
    """

    def __init__(
        self,
        name_factory: Optional[Callable[[str], str]] = None,
    ) -> None:
        self._name_factory = name_factory or make_artifact_name
        self._lock = threading.Lock()
        self._records: dict[str, StagedArchive] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._records

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    def publish(self, staged: StagedArchive) -> str:
        """Register a finalized archive and return its new public name.

        The name is only returned after the record is visible, so any
        claim made with it can find it.
        """
        while True:
            candidate = self._name_factory(staged.base_name)
            with self._lock:
                if candidate not in self._records:
                    self._records[candidate] = staged
                    break
            logger.warning("Artifact name collision on %s; retrying", candidate)

        logger.info(
            "Published archive %s (%d bytes, path: %s)",
            candidate, staged.size_bytes, staged.path,
        )
        return candidate

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    def claim(self, name: str) -> ClaimedArchive:
        """Remove `name` from the registry and open its archive.

        Exactly one caller can win a given name. After the record is
        popped the file is deleted no matter what happens next.

        Raises:
            ArchiveNotFound: The name is unknown or already claimed.
            StorageUnavailable: The archive file could not be opened.
        """
        with self._lock:
            staged = self._records.pop(name, None)

        if staged is None:
            logger.info("Archive not found in registry: %s", name)
            raise ArchiveNotFound(name)

        try:
            stream = open_scratch(staged.path)
        except OSError as exc:
            logger.error("Error opening archive %s for download: %s", name, exc)
            remove_scratch(staged.path)
            raise StorageUnavailable(name) from exc

        logger.info("Claimed archive %s (path: %s)", name, staged.path)
        return ClaimedArchive(name, stream, staged)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def purge(self) -> int:
        """Drop every unclaimed record and delete its file.

        Called on application shutdown; staged archives do not survive a
        restart. Returns the number of records dropped.
        """
        with self._lock:
            records = list(self._records.values())
            self._records.clear()

        for staged in records:
            remove_scratch(staged.path)
        if records:
            logger.info("Purged %d unclaimed archives", len(records))
        return len(records)
