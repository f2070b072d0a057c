"""API route modules."""

from .admin import router as admin_router
from .auth import router as auth_router
from .emails import router as emails_router

__all__ = ["admin_router", "auth_router", "emails_router"]
