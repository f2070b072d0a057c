"""Email list, detail and reply suggestion endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from src.api.dependencies import (
    get_current_session,
    get_email_store,
    get_suggestion_service,
)
from src.api.middleware import RATE_LIMITS, limiter
from src.api.models import (
    EmailListResponse,
    SuggestReplyRequest,
    SuggestReplyResponse,
)
from src.config.settings import settings
from src.models.email import EmailDocument
from src.models.user import Session
from src.services.email_store import EmailStore
from src.services.suggestion_service import (
    SuggestionAPIError,
    SuggestionCircuitOpenError,
    SuggestionConnectionError,
    SuggestionService,
)
from src.utils.email_query import EmailQuery
from src.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/emails", tags=["Emails"])


@router.get("", response_model=EmailListResponse)
@limiter.limit(RATE_LIMITS["email_list"])
async def list_emails(
    request: Request,
    search: Optional[str] = Query(None, description="Match subject, sender or text body"),
    account: Optional[str] = Query(None, description="Filter by account"),
    folder: Optional[str] = Query(None, description="Filter by folder"),
    category: Optional[str] = Query(None, description="Filter by category"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(
        settings.dashboard.default_page_size,
        ge=1,
        le=settings.dashboard.max_page_size,
        description="Emails per page",
    ),
    session: Session = Depends(get_current_session),
    store: EmailStore = Depends(get_email_store),
) -> EmailListResponse:
    """
    List the signed-in user's emails with optional filtering and pagination.

    **Filters:**
    - `search`: Case-insensitive match on subject, sender and text body
    - `account`, `folder`, `category`: Exact match

    **Pagination:**
    - `page`: Page number (1-indexed)
    - `limit`: Number of emails per page

    Emails are ordered by send date, newest first. `accounts`, `folders`
    and `categories` list every value across the user's mail.
    """
    query = EmailQuery(
        search=search or None,
        account=account or None,
        folder=folder or None,
        category=category or None,
        page=page,
        limit=limit,
    )

    try:
        result = await store.fetch_emails(session.user_id, query)
    except Exception as e:
        logger.error("Failed to list emails", user_id=session.user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list emails: {str(e)}"
        )

    return EmailListResponse(**result.model_dump())


@router.get("/{email_id}", response_model=EmailDocument)
@limiter.limit(RATE_LIMITS["email_get"])
async def get_email(
    request: Request,
    email_id: str,
    session: Session = Depends(get_current_session),
    store: EmailStore = Depends(get_email_store),
) -> EmailDocument:
    """Get one email with its full text and HTML bodies."""
    try:
        email = await store.get_email(session.user_id, email_id)
    except Exception as e:
        logger.error("Failed to get email", email_id=email_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get email: {str(e)}"
        )

    if not email:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Email {email_id} not found"
        )

    return email


@router.post("/{email_id}/suggest-reply", response_model=SuggestReplyResponse)
@limiter.limit(RATE_LIMITS["suggest_reply"])
async def suggest_reply(
    request: Request,
    email_id: str,
    body: SuggestReplyRequest,
    session: Session = Depends(get_current_session),
    store: EmailStore = Depends(get_email_store),
    suggestions: SuggestionService = Depends(get_suggestion_service),
) -> SuggestReplyResponse:
    """
    Suggest replies to an email following the chosen intent.

    Failures of the suggestion API do not fail the request: the response
    carries an empty suggestion list and the error message.
    """
    try:
        email = await store.get_email(session.user_id, email_id)
    except Exception as e:
        logger.error("Failed to get email", email_id=email_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get email: {str(e)}"
        )

    if not email:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Email {email_id} not found"
        )

    try:
        replies = await suggestions.suggest_replies(email_id, body.intent)
    except (SuggestionAPIError, SuggestionConnectionError, SuggestionCircuitOpenError) as e:
        logger.warning("Reply suggestions unavailable", email_id=email_id, error=str(e))
        return SuggestReplyResponse(suggestions=[], error=str(e))

    return SuggestReplyResponse(suggestions=replies)
