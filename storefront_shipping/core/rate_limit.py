"""
Rate Limiting Configuration

Uses SlowAPI for in-memory rate limiting (multi-instance deployments should
point the limiter at Redis). Limits come from the Settings handed to
create_app.
"""
import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from storefront_shipping.core.config import Settings

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Get client IP, respecting X-Forwarded-For for proxied requests.
    Falls back to direct IP if header not present.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(key_func=get_client_ip)

_route_limits = {"shipping": Settings.model_fields["RATE_LIMIT_SHIPPING"].default}


def configure_limiter(settings: Settings) -> Limiter:
    """
    Apply an application's settings to the shared limiter.

    Called by create_app; counters start from zero for every new app.
    """
    limiter.enabled = settings.RATE_LIMIT_ENABLED
    _route_limits["shipping"] = settings.RATE_LIMIT_SHIPPING
    limiter.reset()
    return limiter


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Custom handler for rate limit exceeded errors.
    Returns structured JSON response with retry-after header.
    """
    logger.warning(
        f"Rate limit exceeded: {get_client_ip(request)} on {request.url.path}"
    )

    retry_after = exc.detail.split("per")[0].strip() if exc.detail else "1 minute"

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": f"Too many requests. Please try again in {retry_after}.",
            "retry_after": retry_after,
        },
        headers={"Retry-After": "60"},
    )


def shipping_limit() -> str:
    """Rate limit string for shipping quote endpoints."""
    return _route_limits["shipping"]
