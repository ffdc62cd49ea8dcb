"""SlowAPI rate limiter singleton.

Staging is anonymous, so the limiter is keyed on the client address.
Downloads are not limited: each artifact name can be claimed once, which
already bounds the work a single name can cause.

Usage in route handlers:
    from zipdrop.core.limiter import limiter

    @router.post("/some-endpoint")
    @limiter.limit(settings.upload_rate_limit)
    async def handler(request: Request, ...):
        ...

The `Request` parameter is required by SlowAPI even if the handler doesn't
use it directly: it uses it to extract the key.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, default_limits=[])
