"""Request logging middleware."""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import Request

from src.utils.logging import get_logger

logger = get_logger(__name__)


async def request_logging_middleware(request: Request, call_next: Callable):
    """
    Log all incoming requests with timing and response status.

    Binds a request ID to the structlog context so every log line written
    while handling the request carries it; the ID is echoed back in the
    X-Request-ID response header.
    """
    start_time = time.time()

    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    structlog.contextvars.bind_contextvars(request_id=request_id)

    method = request.method
    path = request.url.path
    client_ip = request.client.host if request.client else None

    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("request_id")

    duration_ms = (time.time() - start_time) * 1000

    log_data = {
        "method": method,
        "path": path,
        "status_code": response.status_code,
        "duration_ms": round(duration_ms, 2),
        "request_id": request_id,
    }

    if client_ip:
        log_data["client_ip"] = client_ip

    # Log at appropriate level
    if response.status_code >= 500:
        logger.error("Request failed", **log_data)
    elif response.status_code >= 400:
        logger.warning("Request error", **log_data)
    else:
        logger.info("Request completed", **log_data)

    response.headers["X-Request-ID"] = request_id
    return response
