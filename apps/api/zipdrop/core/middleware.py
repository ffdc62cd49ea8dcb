"""ASGI middleware for the zipdrop API.

Middlewares registered via `add_middleware` in this order (each one wraps
the previous, so the last one listed sees the request first):
  1. BodySizeLimitMiddleware   - refuses oversized uploads before they are parsed
  2. CORSMiddleware            - handled by FastAPI directly (not here)
  3. SlowAPIMiddleware         - handled by slowapi (not here)
  4. SecurityHeadersMiddleware - adds security response headers
  5. RequestIdMiddleware       - injects / forwards X-Request-ID; stores in ContextVar

The ContextVar `_request_id_var` is the single source of truth for the
current request ID. The logging layer reads it so that every log line
emitted while staging or serving an archive carries the same ID.
"""

import uuid
from contextvars import ContextVar
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

# ---------------------------------------------------------------------------
# ContextVar: shared across middleware and route handlers within one request
# ---------------------------------------------------------------------------

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Return the current request's ID, or an empty string outside a request."""
    return _request_id_var.get()


# ---------------------------------------------------------------------------
# RequestIdMiddleware
# ---------------------------------------------------------------------------


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Read or generate X-Request-ID and make it available for the request lifetime.

    - If the client sends X-Request-ID, that value is reused.
    - If absent, a fresh UUID4 is generated.
    - The ID is always echoed back in the response header so callers can
      correlate an upload with the later download in server-side logs.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        token = _request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# SecurityHeadersMiddleware
# ---------------------------------------------------------------------------


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security-related headers to every outgoing response.

    Download responses carry user-supplied bytes, so nosniff matters
    here more than usual: a browser must never render a staged archive
    as anything other than the declared application/zip.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-XSS-Protection"] = "0"
        return response


# ---------------------------------------------------------------------------
# BodySizeLimitMiddleware
# ---------------------------------------------------------------------------


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds `max_bytes`.

    Chunked uploads without a Content-Length pass through; the archive
    builder's running size check still bounds what gets written to disk.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                length = int(declared)
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={"detail": "Invalid Content-Length header"},
                )
            if length > self.max_bytes:
                return JSONResponse(
                    status_code=413,
                    content={
                        "detail": f"Request body too large (max {self.max_bytes} bytes)"
                    },
                )
        return await call_next(request)
