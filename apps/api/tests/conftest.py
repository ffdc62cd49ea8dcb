"""Shared test fixtures for the zipdrop API test suite.

Every test gets its own scratch directory, so assertions like "no scratch
file was left behind" only ever see files created by that test.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from zipdrop.archives.registry import ArchiveRegistry
from zipdrop.core.config import Settings, get_settings
from zipdrop.main import create_app

TEST_UPLOAD_LIMIT = 1024


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    """A fresh, empty directory for staged archives."""
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def settings(scratch_dir: Path) -> Settings:
    """Settings with a small upload ceiling and the per-test scratch dir."""
    return Settings(
        scratch_dir=str(scratch_dir),
        max_upload_bytes=TEST_UPLOAD_LIMIT,
        sentry_dsn="",
        debug=False,
    )


@pytest.fixture
def registry() -> ArchiveRegistry:
    return ArchiveRegistry()


@pytest.fixture
def app(settings: Settings):
    """Create a FastAPI app with the settings dependency overridden.

    The SlowAPI limiter keeps its counters in memory on a module-level
    object, so it is reset before each test.
    """
    from zipdrop.core.limiter import limiter

    limiter.reset()

    test_app = create_app()
    test_app.dependency_overrides[get_settings] = lambda: settings
    return test_app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client wired to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
