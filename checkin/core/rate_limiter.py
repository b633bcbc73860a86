"""
Rate Limiting for the check in service
======================================
Implements rate limiting using slowapi.

The identity check is the only endpoint a stranger could use to test
names and dates of birth against a check in link, so it has its own
tight limit keyed by client IP. No other route is limited.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request

from checkin.core.config import settings
from checkin.core.logging_config import logger
from checkin.core.templates import render


def get_client_identifier(request: Request) -> str:
    """Rate limit key: first X-Forwarded-For address, else the socket peer"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return f"ip:{forwarded_for.split(',')[0].strip()}"
    return f"ip:{get_remote_address(request)}"


# Create limiter instance
limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Render the GOV.UK error page with 429 and a Retry-After header"""
    retry_after = "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)} on {request.url.path}: {exc.detail}"
    )

    return render(
        request,
        "pages/error.html",
        {
            "status": 429,
            "title_key": "errors.tooManyRequests.title",
            "message": None,
            "message_key": "errors.tooManyRequests.message",
        },
        status_code=429,
        headers={"Retry-After": retry_after},
    )


def verify_rate_limit():
    """Limit for the identity check (VERIFY_RATE_LIMIT, default 10/minute)"""
    return limiter.limit(settings.VERIFY_RATE_LIMIT, key_func=get_client_identifier)
