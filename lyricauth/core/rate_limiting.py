"""Rate limiting configuration using slowapi.

Security: Slows down credential stuffing against /login and mass account
creation against /register.

Requests carrying a valid bearer credential are keyed per account; all
others are keyed by client IP.

Usage in routers:
    from lyricauth.core.rate_limiting import limiter

    @router.post("/login")
    @limiter.limit("5/15minute")
    async def login(request: Request, ...):
        ...
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from lyricauth.core.auth import authenticate
from lyricauth.core.config import settings
from lyricauth.core.errors import UnauthorizedError


def _rate_limit_key_func(request: Request) -> str:
    """Get rate limit key from request.

    Key format:
    - Valid bearer credential: "account:{sub}"
    - Anything else: "unauth:{ip}"

    Args:
        request: The incoming request.

    Returns:
        Rate limit key string.
    """
    authorization = request.headers.get("Authorization")
    if authorization:
        try:
            claims = authenticate(authorization, settings=settings)
            return f"account:{claims.account_id}"
        except (UnauthorizedError, RuntimeError):
            pass

    return f"unauth:{get_remote_address(request)}"


# Global limiter instance with in-memory storage (single-instance deployment).
# For multi-instance, configure Redis storage via RATELIMIT_STORAGE_URL.
limiter = Limiter(
    key_func=_rate_limit_key_func,
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors.

    Returns 429 Too Many Requests with the standard error envelope.

    Args:
        request: The incoming request.
        exc: The rate limit exception.

    Returns:
        JSONResponse with 429 status and retry-after header.
    """
    # exc.detail looks like "5 per 15 minute"; fall back to 60 seconds
    try:
        retry_after = str(exc.detail.split()[-1])
        int(retry_after.rstrip("s"))
    except (ValueError, AttributeError, IndexError):
        retry_after = "60"

    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Rate limit exceeded: {exc.detail}",
            }
        },
        headers={"Retry-After": retry_after},
    )
