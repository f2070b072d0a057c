"""Server-rendered dashboard: sign-in pages, email table and detail view."""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from src.api.dependencies import get_auth_service, get_email_store, get_suggestion_service
from src.api.middleware import RATE_LIMITS, limiter
from src.config.settings import settings
from src.models.email import EmailDocument, ReplyIntent
from src.models.user import Session
from src.services.auth_service import (
    AuthService,
    InvalidCredentialsError,
    InvalidMagicLinkError,
    MissingEmailError,
)
from src.services.email_store import EmailStore
from src.services.suggestion_service import (
    SuggestionAPIError,
    SuggestionCircuitOpenError,
    SuggestionConnectionError,
    SuggestionService,
)
from src.utils.email_query import EmailPage
from src.utils.logging import get_logger
from src.web.presenters import NO_CONTENT, register_filters
from src.web.state import DashboardState

logger = get_logger(__name__)
router = APIRouter(tags=["Dashboard"], include_in_schema=False)

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
register_filters(templates.env)


async def get_web_session(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Optional[Session]:
    """Session from the dashboard cookie, if any."""
    return await auth.get_session(request.cookies.get(settings.auth.session_cookie))


def _signed_in_redirect(session: Session) -> RedirectResponse:
    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        settings.auth.session_cookie,
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        samesite="lax",
        secure=settings.app.env == "production",
    )
    return response


def _login_page(
    request: Request,
    error: Optional[str] = None,
    message: Optional[str] = None,
    email: str = "",
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error": error, "message": message, "email": email},
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    search: Optional[str] = Query(None),
    account: Optional[str] = Query(None),
    folder: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None),
    session: Optional[Session] = Depends(get_web_session),
    store: EmailStore = Depends(get_email_store),
) -> Response:
    """Email table for the signed-in user, or the sign-in page."""
    if not session:
        return _login_page(request)

    state = DashboardState.from_params(search, account, folder, category, page, page_size)

    result = EmailPage(current_page=state.page, page_size=state.page_size)
    overall_total = 0
    error = None
    try:
        result = await store.fetch_emails(session.user_id, state.to_query())
        overall_total = (
            await store.count_emails(session.user_id) if state.has_filters else result.total
        )
    except Exception as e:
        logger.error("Failed to load dashboard", user_id=session.user_id, error=str(e))
        error = f"Error loading emails: {str(e)}"

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "session": session,
            "state": state,
            "result": result,
            "overall_total": overall_total,
            "previous_state": state.with_page(state.page - 1, result.total_pages),
            "next_state": state.with_page(state.page + 1, result.total_pages),
            "page_size_options": settings.dashboard.page_size_options,
            "debounce_ms": settings.dashboard.search_debounce_ms,
            "error": error,
        },
    )


@router.post("/login", response_class=HTMLResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    """Password sign-in form."""
    try:
        session = await auth.sign_in_with_password(email, password)
    except InvalidCredentialsError as e:
        return _login_page(request, error=str(e), email=email, status_code=status.HTTP_401_UNAUTHORIZED)

    return _signed_in_redirect(session)


@router.post("/login/magic-link", response_class=HTMLResponse)
@limiter.limit(RATE_LIMITS["magic_link"])
async def login_magic_link(
    request: Request,
    email: str = Form(""),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    """Magic link request form."""
    try:
        message = await auth.sign_in_with_otp(email)
    except MissingEmailError as e:
        return _login_page(request, error=str(e), email=email, status_code=status.HTTP_400_BAD_REQUEST)

    return _login_page(request, message=message, email=email)


@router.get("/auth/callback", response_class=HTMLResponse)
@limiter.limit(RATE_LIMITS["magic_link_verify"])
async def magic_link_callback(
    request: Request,
    token: str = Query(""),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    """Landing page of the emailed sign-in link."""
    try:
        session = await auth.verify_magic_link(token)
    except InvalidMagicLinkError as e:
        return _login_page(request, error=str(e), status_code=status.HTTP_401_UNAUTHORIZED)

    return _signed_in_redirect(session)


@router.post("/logout")
async def logout(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Sign out and drop the session cookie."""
    await auth.sign_out(request.cookies.get(settings.auth.session_cookie))

    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(settings.auth.session_cookie)
    return response


async def _load_email(store: EmailStore, session: Session, email_id: str) -> EmailDocument:
    email = await store.get_email(session.user_id, email_id)
    if not email:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Email {email_id} not found"
        )
    return email


def _detail_page(
    request: Request,
    email: EmailDocument,
    back_query: str = "",
    intent: Optional[ReplyIntent] = None,
    suggestions: Optional[list[str]] = None,
    suggestion_error: Optional[str] = None,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "email_detail.html",
        {
            "email": email,
            "back_query": back_query,
            "intents": list(ReplyIntent),
            "intent": intent,
            "suggestions": suggestions,
            "suggestion_error": suggestion_error,
            "no_content": NO_CONTENT,
        },
    )


@router.get("/emails/{email_id}", response_class=HTMLResponse)
async def email_detail(
    request: Request,
    email_id: str,
    back: str = Query(""),
    session: Optional[Session] = Depends(get_web_session),
    store: EmailStore = Depends(get_email_store),
) -> Response:
    """Full view of one email."""
    if not session:
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)

    email = await _load_email(store, session, email_id)
    return _detail_page(request, email, back_query=back)


@router.post("/emails/{email_id}/suggest-reply", response_class=HTMLResponse)
@limiter.limit(RATE_LIMITS["suggest_reply"])
async def email_suggest_reply(
    request: Request,
    email_id: str,
    intent: ReplyIntent = Form(...),
    back: str = Form(""),
    session: Optional[Session] = Depends(get_web_session),
    store: EmailStore = Depends(get_email_store),
    suggestion_service: SuggestionService = Depends(get_suggestion_service),
) -> Response:
    """Detail view with reply suggestions for the chosen intent."""
    if not session:
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)

    email = await _load_email(store, session, email_id)

    suggestions: list[str] = []
    suggestion_error = None
    try:
        suggestions = await suggestion_service.suggest_replies(email_id, intent)
    except (SuggestionAPIError, SuggestionConnectionError, SuggestionCircuitOpenError) as e:
        logger.warning("Reply suggestions unavailable", email_id=email_id, error=str(e))
        suggestion_error = str(e)

    return _detail_page(
        request,
        email,
        back_query=back,
        intent=intent,
        suggestions=suggestions,
        suggestion_error=suggestion_error,
    )
