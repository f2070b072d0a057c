"""Dashboard view state: search, filters and pagination."""

from typing import Optional
from urllib.parse import urlencode

from pydantic import BaseModel, Field

from src.config.settings import settings
from src.utils.email_query import EmailQuery

ALL = "all"
FILTER_FIELDS = ("search", "account", "folder", "category")


def _filter_value(value: Optional[str]) -> str:
    value = (value or "").strip()
    return value or ALL


class DashboardState(BaseModel):
    """
    What the dashboard is currently showing.

    Changing the search, a filter or the page size goes back to page 1.
    A page change is only taken when the new page exists.
    """

    search: str = ""
    account: str = ALL
    folder: str = ALL
    category: str = ALL
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default_factory=lambda: settings.dashboard.default_page_size)

    @classmethod
    def from_params(
        cls,
        search: Optional[str] = None,
        account: Optional[str] = None,
        folder: Optional[str] = None,
        category: Optional[str] = None,
        page: Optional[str] = None,
        page_size: Optional[str] = None,
    ) -> "DashboardState":
        """
        Build the state from query-string values.

        Missing or malformed values fall back to the defaults; a page size
        that is not one of the offered options falls back to the default.
        """
        try:
            page_number = max(int(page), 1) if page else 1
        except ValueError:
            page_number = 1

        return cls(
            search=(search or "").strip(),
            account=_filter_value(account),
            folder=_filter_value(folder),
            category=_filter_value(category),
            page=page_number,
            page_size=cls.valid_page_size(page_size),
        )

    @staticmethod
    def valid_page_size(value: Optional[str | int]) -> int:
        """Offered page size, or the default."""
        options = settings.dashboard.page_size_options
        try:
            size = int(value) if value is not None else None
        except ValueError:
            size = None
        return size if size in options else settings.dashboard.default_page_size

    def with_filter(self, field: str, value: Optional[str]) -> "DashboardState":
        """Change the search or a filter, back to page 1."""
        if field not in FILTER_FIELDS:
            raise ValueError(f"Unknown filter: {field}")
        value = (value or "").strip() if field == "search" else _filter_value(value)
        return self.model_copy(update={field: value, "page": 1})

    def with_page_size(self, value: Optional[str | int]) -> "DashboardState":
        """Change the page size, back to page 1."""
        return self.model_copy(update={"page_size": self.valid_page_size(value), "page": 1})

    def with_page(self, new_page: int, total_pages: int) -> "DashboardState":
        """Move to another page; out-of-range pages leave the state as is."""
        if 0 < new_page <= total_pages:
            return self.model_copy(update={"page": new_page})
        return self

    @property
    def has_filters(self) -> bool:
        """Whether the search or any filter narrows the list."""
        return bool(self.search) or any(
            value != ALL for value in (self.account, self.folder, self.category)
        )

    def to_query(self) -> EmailQuery:
        """Store query for this state; "all" means no filter."""
        return EmailQuery(
            search=self.search or None,
            account=None if self.account == ALL else self.account,
            folder=None if self.folder == ALL else self.folder,
            category=None if self.category == ALL else self.category,
            page=self.page,
            limit=self.page_size,
        )

    def query_string(self) -> str:
        """URL query string reproducing this state."""
        params = {"page": self.page, "page_size": self.page_size}
        if self.search:
            params["search"] = self.search
        for field in ("account", "folder", "category"):
            value = getattr(self, field)
            if value != ALL:
                params[field] = value
        return urlencode(params)
