"""Rate limiting for the planner API.

SlowAPI with a configurable storage backend (settings.RATE_LIMIT_STORAGE_URI):
in-memory for a single instance, redis:// when several instances share limits.

Limits scale with the work a request triggers:
- Planning: one Dijkstra search per filter and boarding candidate
- Admin: a full network rebuild
- Lookups: a dict access or a linear scan over the stops
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import settings


class RateLimits:
    """Centralized rate limit definitions."""

    # Planning
    ROUTE_PLANNER = "30/minute"       # Up to 3 searches per request
    COORDINATE_PLANNER = "20/minute"  # Up to 9 searches plus walking lookups

    # Admin
    ADMIN_RELOAD = "2/minute"         # Full network rebuild

    # Lookups
    NEARBY_STOPS = "60/minute"        # Linear scan over all stops
    STOPS = "200/minute"
    LINES = "200/minute"
    HEALTH = "1000/minute"

    DEFAULT = "200/minute"


def get_client_identifier(request: Request) -> str:
    """Client key for rate limiting.

    First X-Forwarded-For address when behind a proxy, then CF-Connecting-IP,
    then the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    cf_connecting_ip = request.headers.get("CF-Connecting-IP")
    if cf_connecting_ip:
        return cf_connecting_ip

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[RateLimits.DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the exceeded limit and a Retry-After hint."""
    retry_after = str(getattr(exc, "retry_after", 60))
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": f"Rate limit exceeded: {exc.detail}",
            "retry_after": retry_after,
        },
        headers={
            "Retry-After": retry_after,
            "X-RateLimit-Limit": str(exc.detail) if exc.detail else "unknown",
        },
    )
