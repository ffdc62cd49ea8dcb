from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The upload ceiling applies to the sum of all files in one staging
    request. The request ceiling is slightly larger so that multipart
    framing does not push a legitimate upload over the body limit; an
    upload that slips past it is still caught by the archive builder.

    Scratch archives land in SCRATCH_DIR, or the system temp directory
    when it is unset.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Limits
    max_upload_bytes: int = 100 * _MIB
    max_request_bytes: int = 101 * _MIB

    @field_validator("max_upload_bytes")
    @classmethod
    def require_positive_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_upload_bytes must be positive")
        return v

    # Scratch storage for staged archives
    scratch_dir: Optional[str] = None

    # CORS: comma-separated list of allowed origins.
    cors_origins: list[str] = ["*"]

    # Rate limiting: SlowAPI format, e.g. "10/minute", "100/hour".
    upload_rate_limit: str = "30/minute"

    # Sentry: leave blank to disable error capture.
    sentry_dsn: str = ""

    # App
    debug: bool = True


def get_settings() -> Settings:
    return Settings()
