"""Types for the archives module."""

import io
from dataclasses import dataclass
from typing import BinaryIO, Callable


@dataclass(frozen=True)
class UploadEntry:
    """One file waiting to be packed into an archive.

    `size` is the length declared by the transport (e.g. the multipart
    part size). The builder treats it as a hint and re-checks the bytes
    it actually copies. `opener` returns the content stream; the builder
    calls it only when it reaches this entry and closes the stream
    before moving on.
    """

    name: str
    size: int
    opener: Callable[[], BinaryIO]

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "UploadEntry":
        return cls(name=name, size=len(data), opener=lambda: io.BytesIO(data))


@dataclass(frozen=True)
class StagedArchive:
    """A finalized archive on scratch storage, ready to be published.

    base_name is the human-legible prefix of the public artifact name:
    the stem of the single uploaded file, or "archive".
    """

    path: str
    size_bytes: int
    base_name: str
    entry_count: int
