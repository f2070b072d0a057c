"""
Email list query helpers.

Filtering, ordering, pagination and filter-option computation for the
email list. Kept free of I/O so the store and the dashboard share one
definition of what a page of results is.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from src.models.email import EmailDocument

DEFAULT_PAGE_SIZE = 15

SEARCH_FIELDS = ("subject", "from_address", "body_text")


class EmailQuery(BaseModel):
    """Search, filter and pagination parameters for the email list."""

    search: Optional[str] = None
    account: Optional[str] = None
    folder: Optional[str] = None
    category: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)

    @property
    def offset(self) -> int:
        """Index of the first row of the requested page."""
        return (self.page - 1) * self.limit

    @property
    def filters(self) -> dict[str, Optional[str]]:
        """Active filter values, for logging."""
        return {
            "search": self.search,
            "account": self.account,
            "folder": self.folder,
            "category": self.category,
        }


class EmailPage(BaseModel):
    """One page of the email list plus the dropdown options."""

    emails: list[EmailDocument] = Field(default_factory=list)
    total: int = 0
    current_page: int = 1
    page_size: int = 0
    total_pages: int = 0
    accounts: list[str] = Field(default_factory=list)
    folders: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)


def matches_query(email: EmailDocument, query: EmailQuery) -> bool:
    """
    Check whether an email passes the query's search and filters.

    Search is a case-insensitive substring match against subject, sender
    and text body; any one field matching is enough. Account, folder and
    category must match exactly. Empty values do not filter.
    """
    if query.search:
        needle = query.search.lower()
        haystacks = (getattr(email, field) or "" for field in SEARCH_FIELDS)
        if not any(needle in value.lower() for value in haystacks):
            return False

    if query.account and email.account != query.account:
        return False

    if query.folder and email.folder != query.folder:
        return False

    if query.category and email.category != query.category:
        return False

    return True


def _as_timestamp(value: datetime) -> float:
    # Naive datetimes are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def sort_key(email: EmailDocument) -> tuple[bool, float]:
    """Sort key for newest-sent first, emails without a send date last."""
    if email.sent_at is None:
        return (True, 0.0)
    return (False, -_as_timestamp(email.sent_at))


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show ``total`` rows ``limit`` at a time."""
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def paginate(items: list, page: int, limit: int) -> list:
    """Slice one page out of an ordered list (pages are 1-indexed)."""
    start_idx = (page - 1) * limit
    end_idx = start_idx + limit
    return items[start_idx:end_idx]


def distinct_values(emails: Iterable[EmailDocument], field: str) -> list[str]:
    """Unique non-empty values of ``field``, sorted."""
    return sorted({value for value in (getattr(email, field) for email in emails) if value})


def build_page(emails: list[EmailDocument], query: EmailQuery) -> EmailPage:
    """
    Run a query over a user's emails.

    Args:
        emails: Every email visible to the user
        query: Search, filter and pagination parameters

    Returns:
        The requested page with totals. Filter options are left empty;
        they are computed over all emails by ``filter_options``.
    """
    matching = [email for email in emails if matches_query(email, query)]
    matching.sort(key=sort_key)

    total = len(matching)
    return EmailPage(
        emails=paginate(matching, query.page, query.limit),
        total=total,
        current_page=query.page,
        page_size=query.limit,
        total_pages=total_pages(total, query.limit),
    )


def filter_options(emails: list[EmailDocument]) -> dict[str, list[str]]:
    """Dropdown options for account, folder and category."""
    return {
        "accounts": distinct_values(emails, "account"),
        "folders": distinct_values(emails, "folder"),
        "categories": distinct_values(emails, "category"),
    }
