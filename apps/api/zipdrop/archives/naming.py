"""Artifact and entry naming rules.

Artifact names are the only credential needed to download an archive, so
they combine a human-legible prefix with an unguessable token:

    {base}_{YYYYmmdd_HHMMSS}_{16 hex chars}.zip

Entry names are the display names of uploaded files. The archive builder
stores them verbatim; `normalise_entry_names()` is the policy the HTTP
layer applies before handing entries to the builder.
"""

import os
import re
import secrets
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

DEFAULT_BASE_NAME = "archive"
MAX_BASE_NAME_LENGTH = 64
TOKEN_BYTES = 8

ARTIFACT_NAME_PATTERN = re.compile(
    r"^[A-Za-z0-9._-]{1,64}_\d{8}_\d{6}_[0-9a-f]{16}\.zip$"
)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _sanitize_component(value: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("-", value).strip("-.")
    return cleaned[:MAX_BASE_NAME_LENGTH] or DEFAULT_BASE_NAME


def _final_component(name: str) -> str:
    return name.replace("\\", "/").rsplit("/", 1)[-1]


def base_name_for(entry_names: Sequence[str]) -> str:
    """Return the artifact prefix: the single file's stem, or "archive"."""
    if len(entry_names) != 1:
        return DEFAULT_BASE_NAME
    stem, _ext = os.path.splitext(_final_component(entry_names[0]))
    return _sanitize_component(stem)


def make_artifact_name(
    base_name: str,
    *,
    now: Optional[datetime] = None,
    token: Optional[str] = None,
) -> str:
    """Build a candidate artifact name.

    Both `now` and `token` are injectable for tests; production callers
    leave them unset to get the current UTC time and a fresh random token.
    """
    now = now or datetime.now(timezone.utc)
    token = token or secrets.token_hex(TOKEN_BYTES)
    return f"{_sanitize_component(base_name)}_{now:%Y%m%d_%H%M%S}_{token}.zip"


def is_artifact_name(value: str) -> bool:
    return ARTIFACT_NAME_PATTERN.fullmatch(value) is not None


def normalise_entry_names(names: Iterable[str]) -> list[str]:
    """Make uploaded display names safe to use as archive member names.

    - Directory components are dropped (both "/" and "\\" separators).
    - Empty names, "." and "..", and names containing NUL are rejected.
    - Duplicates are renamed "stem (1).ext", "stem (2).ext", ... in upload
      order; the first occurrence keeps its name.

    Raises:
        ValueError: If a name cannot be used at all.
    """
    result: list[str] = []
    seen: set[str] = set()

    for raw in names:
        if "\x00" in raw:
            raise ValueError(f"Invalid file name: null byte detected: {raw!r}")
        name = _final_component(raw).strip()
        if name in ("", ".", ".."):
            raise ValueError(f"Invalid file name: {raw!r}")

        if name in seen:
            stem, ext = os.path.splitext(name)
            counter = 1
            while f"{stem} ({counter}){ext}" in seen:
                counter += 1
            name = f"{stem} ({counter}){ext}"

        seen.add(name)
        result.append(name)

    return result
