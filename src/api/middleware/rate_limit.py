"""Rate limiting using slowapi."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.config.settings import settings
from src.utils.logging import get_logger

logger = get_logger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute", "5000/hour"],
    storage_uri="memory://",
    enabled=settings.app.env != "testing",
)


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Custom error handler for rate limit exceeded.

    Returns:
        JSONResponse with 429 status code and helpful error message
    """
    logger.warning(
        "Rate limit exceeded",
        ip=get_remote_address(request),
        path=request.url.path,
        limit=str(exc.detail),
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": str(60)},
    )


# Specific rate limits for different endpoint types
RATE_LIMITS = {
    # Sign-in endpoints - strict limits
    "login": "10/minute",
    "magic_link": "5/minute",
    "magic_link_verify": "20/minute",

    # Dashboard data - moderate limits
    "email_list": "120/minute",
    "email_get": "200/minute",
    "suggest_reply": "20/minute",
}
