"""Email record models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class ReplyIntent(str, Enum):
    """Intent the reply suggestions should follow."""

    REQUEST_MEETING = "Interested - Request Meeting"
    POSITIVE_REPLY = "Interested - Positive Reply"
    POLITE_DECLINE = "Not Interested - Polite Decline"
    UNSUBSCRIBE = "Not Interested - Unsubscribe"


class EmailDocument(BaseModel):
    """Stored email as synced from a mailbox."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    unique_identifier: Optional[str] = None
    message_id: Optional[str] = None
    user_id: str

    subject: Optional[str] = None
    from_address: Optional[str] = None
    to_addresses: list[str] = Field(default_factory=list)
    body_text: Optional[str] = None
    body_html: Optional[str] = None

    sent_at: Optional[datetime] = None
    received_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    account: str
    folder: Optional[str] = None
    category: Optional[str] = None

    @field_validator("to_addresses", mode="before")
    @classmethod
    def parse_recipients(cls, v: str | list[str] | None) -> list[str]:
        """Parse comma-separated string or list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [address.strip() for address in v.split(",") if address.strip()]
        return v

    @property
    def row_key(self) -> str:
        """Key used to identify the row in the dashboard table."""
        return self.id or self.unique_identifier or ""

    @property
    def list_date(self) -> Optional[datetime]:
        """Date shown in the list view."""
        return self.sent_at or self.received_at or self.created_at

    @property
    def detail_date(self) -> Optional[datetime]:
        """Date shown in the detail view."""
        return self.received_at or self.sent_at or self.created_at
