"""Rate limiting configuration for API endpoints.

Uses slowapi with in-memory storage; each Lambda/container instance limits
its own traffic.
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from portfolio_agent.infrastructure.captcha import extract_client_ip
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)


def _get_rate_limit_key(request: Request) -> str:
    """Rate limit key: the visitor's IP as seen through Cloudflare/CloudFront."""
    return extract_client_ip(request.headers) or get_remote_address(request)


limiter = Limiter(
    key_func=_get_rate_limit_key,
    storage_uri="memory://",
    strategy="fixed-window",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Custom handler for rate limit exceeded errors."""
    logger.warning(
        "rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        key=_get_rate_limit_key(request),
        limit=str(exc.detail),
    )

    retry_after = getattr(exc, "retry_after", 60)
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests. Please wait a moment.",
            "details": str(exc.detail),
        },
        headers={"Retry-After": str(retry_after)},
    )


# ----- Rate Limits -----
# Usage: @limiter.limit(RATE_LIMIT_AGENT)

RATE_LIMIT_AGENT = "20/minute"  # Each request may cost several model rounds
RATE_LIMIT_TOKEN = "30/minute"
