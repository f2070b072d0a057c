"""Shared service instances and FastAPI dependencies."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.models.user import Session
from src.services.auth_service import AuthService
from src.services.email_store import EmailStore
from src.services.suggestion_service import SuggestionService

# Service instances, connected and closed by the application lifespan
email_store = EmailStore()
auth_service = AuthService()
suggestion_service = SuggestionService()

bearer_scheme = HTTPBearer(auto_error=False)


def get_email_store() -> EmailStore:
    """Email store dependency."""
    return email_store


def get_auth_service() -> AuthService:
    """Auth service dependency."""
    return auth_service


def get_suggestion_service() -> SuggestionService:
    """Suggestion client dependency."""
    return suggestion_service


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Session:
    """
    Resolve the bearer token to a session.

    Raises:
        HTTPException: 401 if the token is missing, invalid or signed out
    """
    token = credentials.credentials if credentials else None
    session = await auth.get_session(token)

    if not session:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return session
