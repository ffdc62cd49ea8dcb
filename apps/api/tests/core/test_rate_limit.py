"""Tests for rate limiting on the staging endpoint.

SlowAPI keys on the client address; every request from the test client
comes from the same address, so all requests within one test count
against the same bucket. The `app` fixture resets the in-memory counters.
"""

from httpx import AsyncClient

from zipdrop.core.config import Settings


def _one_file() -> list:
    return [("files", ("a.txt", b"hello", "text/plain"))]


class TestStagingRateLimit:
    async def test_first_request_is_accepted(self, client: AsyncClient) -> None:
        res = await client.post("/compress", files=_one_file())
        assert res.status_code == 201

    async def test_429_returned_after_exceeding_limit(self, client: AsyncClient) -> None:
        """The default limit is "30/minute", so 32 requests must trip it."""
        assert Settings().upload_rate_limit == "30/minute"

        statuses = []
        for _ in range(32):
            r = await client.post("/compress", files=_one_file())
            statuses.append(r.status_code)

        assert statuses[0] == 201
        assert 429 in statuses, f"Expected 429 in statuses but got: {statuses}"

    async def test_429_response_has_security_headers(self, client: AsyncClient) -> None:
        last = None
        for _ in range(32):
            last = await client.post("/compress", files=_one_file())
            if last.status_code == 429:
                break

        assert last is not None and last.status_code == 429
        assert last.headers.get("x-content-type-options") == "nosniff"

    async def test_downloads_are_not_rate_limited(self, client: AsyncClient) -> None:
        statuses = []
        for _ in range(35):
            r = await client.get("/download/archive_20260101_000000_0123456789abcdef.zip")
            statuses.append(r.status_code)

        assert set(statuses) == {404}
