"""User and session models."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class User(BaseModel):
    """Dashboard user."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    email: str
    password_hash: str = ""
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Email addresses are matched case-insensitively."""
        return v.strip().lower()


class Session(BaseModel):
    """Authenticated session backed by a signed access token."""

    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        """Seconds until the token expires."""
        return max(0, int((self.expires_at - datetime.now(self.expires_at.tzinfo)).total_seconds()))
