"""Tests for middleware: request ID, security headers, body limit, CORS.

Most tests use the standard `client` fixture, which spins up the full app
with a per-test scratch directory.
"""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from zipdrop.core.config import get_settings
from zipdrop.main import create_app


class TestRequestIdMiddleware:
    async def test_response_includes_request_id_header(self, client: AsyncClient) -> None:
        res = await client.get("/health")
        assert "x-request-id" in res.headers

    async def test_generated_request_id_is_valid_uuid(self, client: AsyncClient) -> None:
        res = await client.get("/health")
        uuid.UUID(res.headers["x-request-id"])

    async def test_client_supplied_request_id_is_echoed_back(self, client: AsyncClient) -> None:
        my_id = str(uuid.uuid4())
        res = await client.get("/health", headers={"X-Request-ID": my_id})
        assert res.headers["x-request-id"] == my_id

    async def test_each_request_gets_a_unique_id_when_none_supplied(
        self, client: AsyncClient
    ) -> None:
        r1 = await client.get("/health")
        r2 = await client.get("/health")
        assert r1.headers["x-request-id"] != r2.headers["x-request-id"]

    async def test_request_id_present_on_404(self, client: AsyncClient) -> None:
        res = await client.get("/download/nope")
        assert res.status_code == 404
        assert "x-request-id" in res.headers


class TestSecurityHeadersMiddleware:
    async def test_x_content_type_options_nosniff(self, client: AsyncClient) -> None:
        res = await client.get("/health")
        assert res.headers.get("x-content-type-options") == "nosniff"

    async def test_x_frame_options_deny(self, client: AsyncClient) -> None:
        res = await client.get("/health")
        assert res.headers.get("x-frame-options") == "DENY"

    async def test_referrer_policy(self, client: AsyncClient) -> None:
        res = await client.get("/health")
        assert res.headers.get("referrer-policy") == "strict-origin-when-cross-origin"

    async def test_xss_protection_disabled(self, client: AsyncClient) -> None:
        res = await client.get("/health")
        assert res.headers.get("x-xss-protection") == "0"


class TestBodySizeLimitMiddleware:
    @pytest.fixture
    async def small_body_client(self, monkeypatch, settings):
        from zipdrop.core.limiter import limiter

        limiter.reset()
        monkeypatch.setenv("MAX_REQUEST_BYTES", "512")
        small_app = create_app()
        small_app.dependency_overrides[get_settings] = lambda: settings
        transport = ASGITransport(app=small_app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    async def test_oversized_body_is_rejected(self, small_body_client, scratch_dir) -> None:
        res = await small_body_client.post(
            "/compress",
            files=[("files", ("big.bin", b"x" * 1000, "application/octet-stream"))],
        )

        assert res.status_code == 413
        assert "512" in res.json()["detail"]
        assert list(scratch_dir.iterdir()) == []

    async def test_rejection_still_has_security_headers(self, small_body_client) -> None:
        res = await small_body_client.post(
            "/compress",
            files=[("files", ("big.bin", b"x" * 1000, "application/octet-stream"))],
        )

        assert res.headers.get("x-content-type-options") == "nosniff"
        assert "x-request-id" in res.headers

    async def test_small_body_passes(self, small_body_client) -> None:
        res = await small_body_client.post(
            "/compress",
            files=[("files", ("tiny.txt", b"hi", "text/plain"))],
        )
        assert res.status_code == 201

    async def test_invalid_content_length_is_rejected(self, small_body_client) -> None:
        res = await small_body_client.post(
            "/filename", content=b"", headers={"Content-Length": "lots"}
        )
        assert res.status_code == 400


class TestCORSMiddleware:
    async def test_cors_headers_on_options_preflight(self, client: AsyncClient) -> None:
        res = await client.options(
            "/compress",
            headers={
                "Origin": "https://zipdrop.example",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert res.headers.get("access-control-allow-origin") is not None

    async def test_cors_header_on_regular_request(self, client: AsyncClient) -> None:
        res = await client.get(
            "/health",
            headers={"Origin": "https://zipdrop.example"},
        )
        assert "access-control-allow-origin" in res.headers
