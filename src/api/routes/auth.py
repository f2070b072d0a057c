"""Sign-in and session endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.api.dependencies import get_auth_service, get_current_session
from src.api.middleware import RATE_LIMITS, limiter
from src.api.models import (
    MagicLinkRequest,
    MagicLinkVerifyRequest,
    MessageResponse,
    PasswordLoginRequest,
    SessionResponse,
)
from src.models.user import Session
from src.services.auth_service import (
    AuthService,
    InvalidCredentialsError,
    InvalidMagicLinkError,
    MissingEmailError,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["Auth"])


def session_to_response(session: Session) -> SessionResponse:
    """Convert Session model to SessionResponse."""
    return SessionResponse(
        access_token=session.access_token,
        token_type=session.token_type,
        expires_in=session.expires_in,
        expires_at=session.expires_at,
        user_id=session.user_id,
        email=session.email,
    )


@router.post("/login", response_model=SessionResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    body: PasswordLoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    """Sign in with email and password."""
    try:
        session = await auth.sign_in_with_password(body.email, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    return session_to_response(session)


@router.post("/magic-link", response_model=MessageResponse)
@limiter.limit(RATE_LIMITS["magic_link"])
async def send_magic_link(
    request: Request,
    body: MagicLinkRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """
    Email a one-time sign-in link.

    The response is the same whether or not the address is registered or
    the link could be delivered.
    """
    try:
        message = await auth.sign_in_with_otp(body.email)
    except MissingEmailError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MessageResponse(message=message)


@router.post("/verify", response_model=SessionResponse)
@limiter.limit(RATE_LIMITS["magic_link_verify"])
async def verify_magic_link(
    request: Request,
    body: MagicLinkVerifyRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    """Exchange a magic-link token for a session."""
    try:
        session = await auth.verify_magic_link(body.token)
    except InvalidMagicLinkError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    return session_to_response(session)


@router.get("/session", response_model=SessionResponse)
async def get_session(session: Session = Depends(get_current_session)) -> SessionResponse:
    """Current session details."""
    return session_to_response(session)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    session: Session = Depends(get_current_session),
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Sign out, revoking the current access token."""
    await auth.sign_out(session.access_token)
    return MessageResponse(message="Signed out")
