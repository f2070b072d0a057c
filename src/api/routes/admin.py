"""Admin endpoints for users and email import (X-API-Key protected)."""

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_auth_service, get_email_store
from src.api.models import (
    CreateUserRequest,
    EmailIngestRequest,
    EmailIngestResponse,
    UserResponse,
)
from src.services.auth_service import AuthService, MissingEmailError, UserExistsError
from src.services.email_store import EmailStore
from src.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    auth: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Create a dashboard user. Omit the password for magic-link-only accounts."""
    try:
        user = await auth.create_user(body.email, body.password)
    except UserExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except MissingEmailError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return UserResponse(id=user.id, email=user.email, created_at=user.created_at)


@router.post("/emails", response_model=EmailIngestResponse)
async def ingest_emails(
    body: EmailIngestRequest,
    store: EmailStore = Depends(get_email_store),
) -> EmailIngestResponse:
    """
    Import emails synced from mailboxes.

    Emails with an existing ID are replaced.
    """
    try:
        count = await store.save_emails(body.emails)
    except Exception as e:
        logger.error("Failed to import emails", count=len(body.emails), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to import emails: {str(e)}"
        )

    return EmailIngestResponse(success=True, count=count)


@router.delete("/users/{user_id}/emails/{email_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_email(
    user_id: str,
    email_id: str,
    store: EmailStore = Depends(get_email_store),
) -> None:
    """Delete one of a user's emails."""
    if not await store.delete_email(user_id, email_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Email {email_id} not found"
        )
