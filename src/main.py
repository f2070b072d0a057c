"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from src.api.dependencies import auth_service, email_store, suggestion_service
from src.api.middleware import (
    admin_api_key_middleware,
    limiter,
    rate_limit_error_handler,
    request_logging_middleware,
)
from src.api.routes import admin_router, auth_router, emails_router
from src.config.settings import settings
from src.services.suggestion_service import CircuitState
from src.utils.logging import configure_logging, get_logger
from src.web import web_router

# Configure logging
configure_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    logger.info("Starting Inbox Triage Dashboard", env=settings.app.env)

    try:
        await email_store.connect()
        await auth_service.connect()
    except Exception as e:
        logger.warning(f"Redis not connected at startup: {e}")
        if settings.app.env == "production":
            raise

    yield

    logger.info("Shutting down...")
    await email_store.disconnect()
    await auth_service.disconnect()
    logger.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Inbox Triage Dashboard",
    description="Search, filter and triage synced email with AI reply suggestions",
    version=VERSION,
    lifespan=lifespan,
)

# Add rate limiting state and error handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.admin.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add custom middleware
app.middleware("http")(request_logging_middleware)
app.middleware("http")(admin_api_key_middleware)

# Include API routers
app.include_router(emails_router, prefix="/api/v1")
app.include_router(auth_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")

# Dashboard pages
app.include_router(web_router)


# Health endpoints
@app.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "version": VERSION,
    }


@app.get("/health/detailed")
async def detailed_health():
    """Component health: Redis connectivity and suggestion API circuit."""
    components_status = {}
    overall_status = "healthy"

    # Check Redis
    try:
        if email_store.redis:
            await email_store.redis.ping()
            components_status["redis"] = "connected"
        else:
            components_status["redis"] = "not_initialized"
            overall_status = "degraded"
    except Exception as e:
        components_status["redis"] = f"error: {str(e)}"
        overall_status = "degraded"

    # Check suggestion API circuit
    if suggestion_service.circuit_breaker.state == CircuitState.OPEN:
        components_status["suggestion_api"] = "circuit_open"
        overall_status = "degraded"
    else:
        components_status["suggestion_api"] = "available"

    return {
        "status": overall_status,
        "version": VERSION,
        "components": components_status,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.admin.port,
        reload=settings.app.debug,
        log_level=settings.app.log_level.lower(),
    )
