"""Pydantic schemas for archive endpoints."""

from pydantic import BaseModel, Field


class StageArchiveResponse(BaseModel):
    """Response after a successful upload.

    `artifact_name` is the only credential needed to download the archive,
    and it works exactly once.
    """

    artifact_name: str
    download_url: str
    file_count: int = Field(..., ge=1)
    message: str


class SelectedFilesResponse(BaseModel):
    """Preview of the files picked in the upload form.

    Long selections are cut short; `truncated` counts the names left out.
    """

    count: int
    names: list[str]
    truncated: int = 0
