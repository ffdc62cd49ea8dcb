"""Scratch storage for staged archives.

Staged archives are plain files in a scratch directory (the system temp
directory unless SCRATCH_DIR is set). File names come from `tempfile`, so
concurrent builds never collide, and they are never exposed to clients:
the public artifact name is issued separately by the registry.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import IO, Optional

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "archive-"
SCRATCH_SUFFIX = ".zip"


def allocate_scratch(scratch_dir: Optional[str] = None) -> IO[bytes]:
    """Create a fresh, uniquely named scratch file open for writing.

    The caller owns the file and must remove it with `remove_scratch()`
    once it is no longer needed.
    """
    if scratch_dir:
        os.makedirs(scratch_dir, exist_ok=True)
    return tempfile.NamedTemporaryFile(
        mode="w+b",
        prefix=SCRATCH_PREFIX,
        suffix=SCRATCH_SUFFIX,
        dir=scratch_dir,
        delete=False,
    )


def open_scratch(path: str) -> IO[bytes]:
    """Open a finalized scratch file for reading from its first byte."""
    return open(path, "rb")


def remove_scratch(path: str) -> bool:
    """Delete a scratch file, best effort.

    Returns True if the file is gone afterwards. A failed delete is logged
    and reported through the return value, never raised: cleanup runs on
    error paths where a second exception would hide the first.
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.debug("Scratch file already removed: %s", path)
    except OSError as exc:
        logger.warning("Failed to remove scratch file %s: %s", path, exc)
        return False
    else:
        logger.debug("Scratch file removed: %s", path)
    return True
