from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from zipdrop.archives.registry import ArchiveRegistry
from zipdrop.archives.router import router as archives_router
from zipdrop.core.config import get_settings
from zipdrop.core.limiter import limiter
from zipdrop.core.middleware import (
    BodySizeLimitMiddleware,
    RequestIdMiddleware,
    SecurityHeadersMiddleware,
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Delete archives nobody claimed; they cannot outlive the process."""
    yield
    _app.state.archive_registry.purge()


def create_app() -> FastAPI:
    settings = get_settings()

    _app = FastAPI(
        title="zipdrop API",
        description="Upload files, download them once as a ZIP archive",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ---------------------------------------------------------------------------
    # Archive registry: one per app; handlers reach it through app.state
    # ---------------------------------------------------------------------------
    _app.state.archive_registry = ArchiveRegistry()

    # ---------------------------------------------------------------------------
    # Rate limiter state: SlowAPI reads limiter from app.state
    # ---------------------------------------------------------------------------
    _app.state.limiter = limiter
    _app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # ---------------------------------------------------------------------------
    # Middleware (each add_middleware call wraps the ones added before it)
    # ---------------------------------------------------------------------------

    # Body limit: innermost, so 413s still get CORS, security and request ID headers
    _app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_request_bytes)

    _app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )

    _app.add_middleware(SlowAPIMiddleware)

    # Security headers on every response
    _app.add_middleware(SecurityHeadersMiddleware)

    # Request ID: inject / forward X-Request-ID and bind to ContextVar
    _app.add_middleware(RequestIdMiddleware)

    # ---------------------------------------------------------------------------
    # Sentry: initialised here so it captures startup errors too
    # ---------------------------------------------------------------------------
    from zipdrop.core.sentry import init_sentry

    init_sentry(
        dsn=settings.sentry_dsn,
        environment="development" if settings.debug else "production",
    )

    # ---------------------------------------------------------------------------
    # Logging: configure structlog before any routers log anything
    # ---------------------------------------------------------------------------
    from zipdrop.core.logging import configure_structlog

    configure_structlog(debug=settings.debug)

    # ---------------------------------------------------------------------------
    # Routes
    # ---------------------------------------------------------------------------

    @_app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    _app.include_router(archives_router)

    return _app


app = create_app()
