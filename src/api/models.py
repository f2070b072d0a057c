"""API request/response models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.email import EmailDocument, ReplyIntent


# Email list models
class EmailListResponse(BaseModel):
    """One page of emails plus dropdown options, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    emails: list[EmailDocument] = Field(default_factory=list)
    total: int = Field(default=0, description="Emails matching the filters")
    current_page: int = Field(default=1, description="Current page number")
    page_size: int = Field(default=0, description="Emails per page")
    total_pages: int = Field(default=0, description="Total number of pages")
    accounts: list[str] = Field(default_factory=list)
    folders: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)


class EmailIngestRequest(BaseModel):
    """Bulk email import."""

    emails: list[EmailDocument] = Field(min_length=1)


class EmailIngestResponse(BaseModel):
    """Result of a bulk email import."""

    success: bool
    count: int


# Reply suggestion models
class SuggestReplyRequest(BaseModel):
    """Reply suggestion request."""

    intent: ReplyIntent


class SuggestReplyResponse(BaseModel):
    """Reply suggestions, or an error message to show instead."""

    suggestions: list[str] = Field(default_factory=list)
    error: Optional[str] = None


# Auth models
class PasswordLoginRequest(BaseModel):
    """Email and password sign-in."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class MagicLinkRequest(BaseModel):
    """Magic link sign-in request."""

    email: str = ""


class MagicLinkVerifyRequest(BaseModel):
    """Magic link token exchange."""

    token: str = Field(min_length=1)


class MessageResponse(BaseModel):
    """Plain message for the user."""

    message: str


class SessionResponse(BaseModel):
    """Session issued after sign-in."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime
    user_id: str
    email: str


class CreateUserRequest(BaseModel):
    """Admin user creation."""

    email: str = Field(min_length=3)
    password: Optional[str] = Field(default=None, min_length=8)


class UserResponse(BaseModel):
    """Public user details."""

    id: str
    email: str
    created_at: datetime
