"""Display helpers for the dashboard templates."""

from datetime import datetime
from typing import Optional, Union

NO_SUBJECT = "(No Subject)"
NOT_AVAILABLE = "N/A"
NO_CATEGORY = "None"
INVALID_DATE = "Invalid Date"
NO_CONTENT = "No message content available."

BADGE_BASE_CLASS = "badge"

# Keyed by lower-cased category name
CATEGORY_BADGE_CLASSES = {
    "new order": "badge-green",
    "customer inquiry": "badge-blue",
    "order update": "badge-sky",
    "return processed": "badge-purple",
    "refund issued": "badge-indigo",
    "platform notification": "badge-slate",
    "supplier/logistics communication": "badge-teal",
    "return request": "badge-yellow",
    "payment dispute/chargeback": "badge-red",
    "marketing/promotions (from platforms)": "badge-pink",
}
NEUTRAL_BADGE_CLASS = "badge-gray"

DateValue = Union[datetime, str, None]


def category_badge_class(category: Optional[str]) -> str:
    """CSS classes for a category badge; unknown categories are neutral."""
    colour = CATEGORY_BADGE_CLASSES.get((category or "").strip().lower(), NEUTRAL_BADGE_CLASS)
    return f"{BADGE_BASE_CLASS} {colour}"


def _parse(value: DateValue) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_date(value: DateValue) -> str:
    """Short date for the list view, e.g. ``Mar 4, 2024``."""
    if not value:
        return NOT_AVAILABLE
    try:
        parsed = _parse(value)
    except (TypeError, ValueError):
        return INVALID_DATE
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_datetime(value: DateValue) -> str:
    """Date and time for the detail view, e.g. ``Mar 4, 2024, 09:30``."""
    if not value:
        return NOT_AVAILABLE
    try:
        parsed = _parse(value)
    except (TypeError, ValueError):
        return INVALID_DATE
    return f"{parsed:%b} {parsed.day}, {parsed.year}, {parsed:%H:%M}"


def or_default(value: Optional[str], default: str = NOT_AVAILABLE) -> str:
    """Value, or the placeholder when empty."""
    return value if value else default


def join_addresses(addresses: list[str]) -> str:
    """Recipient list for display."""
    return ", ".join(addresses) if addresses else NOT_AVAILABLE


def register_filters(env) -> None:
    """Expose the helpers to a Jinja2 environment."""
    env.filters["badge_class"] = category_badge_class
    env.filters["short_date"] = format_date
    env.filters["date_time"] = format_datetime
    env.filters["or_default"] = or_default
    env.filters["addresses"] = join_addresses
