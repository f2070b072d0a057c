"""Authentication middleware for admin API key validation."""

import secrets
from typing import Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse

from src.config.settings import settings
from src.utils.logging import get_logger

logger = get_logger(__name__)

ADMIN_PATH_PREFIX = "/api/v1/admin/"


async def admin_api_key_middleware(request: Request, call_next: Callable):
    """
    Validate API key for admin endpoints.

    Requires X-API-Key header matching the configured admin API key.
    User endpoints authenticate with session tokens instead and pass through.
    """
    if not request.url.path.startswith(ADMIN_PATH_PREFIX):
        return await call_next(request)

    api_key = request.headers.get("X-API-Key")

    if not api_key:
        logger.warning(
            "Missing API key",
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Missing API key. Provide X-API-Key header."},
        )

    expected_key = settings.admin.api_key.get_secret_value()
    if not secrets.compare_digest(api_key, expected_key):
        logger.warning(
            "Invalid API key",
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": "Invalid API key"},
        )

    return await call_next(request)
