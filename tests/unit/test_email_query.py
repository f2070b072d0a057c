"""
Unit tests for email query helpers

Tests search, filters, ordering, pagination and filter options
"""
from datetime import datetime, timezone

import pytest

from src.utils.email_query import (
    EmailQuery,
    build_page,
    distinct_values,
    filter_options,
    matches_query,
    paginate,
    sort_key,
    total_pages,
)


@pytest.fixture
def user_emails(sample_emails):
    """Emails of user-1 only."""
    return [email for email in sample_emails if email.user_id == "user-1"]


@pytest.mark.unit
class TestMatchesQuery:
    """Test suite for matches_query"""

    def test_empty_query_matches_everything(self, user_emails):
        """Empty values do not filter."""
        query = EmailQuery(search="", account=None)
        assert all(matches_query(email, query) for email in user_emails)

    def test_search_is_case_insensitive_over_subject(self, make_email):
        email = make_email(subject="Where is my PARCEL?")
        assert matches_query(email, EmailQuery(search="parcel"))

    def test_search_matches_sender_or_text_body(self, make_email):
        """
        Test search across fields

        Given: An email whose subject does not contain the term
        When: The term is in the sender or the text body
        Then: The email matches
        """
        email = make_email(subject="Hello", from_address="alice@example.com", body_text="Tracking number inside")

        assert matches_query(email, EmailQuery(search="ALICE"))
        assert matches_query(email, EmailQuery(search="tracking"))
        assert not matches_query(email, EmailQuery(search="refund"))

    def test_search_ignores_html_body(self, make_email):
        email = make_email(subject="Hi", body_text=None, body_html="<p>secret offer</p>")
        assert not matches_query(email, EmailQuery(search="secret"))

    def test_search_handles_missing_fields(self, make_email):
        email = make_email(subject=None, from_address=None, body_text=None)
        assert not matches_query(email, EmailQuery(search="anything"))

    def test_filters_are_exact(self, make_email):
        email = make_email(account="store@example.com", folder="INBOX", category="New Order")

        assert matches_query(email, EmailQuery(account="store@example.com", folder="INBOX", category="New Order"))
        assert not matches_query(email, EmailQuery(category="new order"))
        assert not matches_query(email, EmailQuery(folder="INBOX/Archive"))
        assert not matches_query(email, EmailQuery(account="store"))

    def test_search_and_filters_combine(self, make_email):
        email = make_email(subject="Refund issued", category="Refund Issued")

        assert matches_query(email, EmailQuery(search="refund", category="Refund Issued"))
        assert not matches_query(email, EmailQuery(search="refund", category="New Order"))


@pytest.mark.unit
class TestOrderingAndPagination:
    """Test suite for sorting and paging"""

    def test_sort_newest_sent_first_nulls_last(self, user_emails):
        ordered = sorted(user_emails, key=sort_key)
        assert [email.id for email in ordered] == ["e2", "e4", "e1", "e3"]

    def test_sort_mixes_naive_and_aware_dates(self, make_email):
        naive = make_email(id="naive", sent_at=datetime(2024, 1, 1, 12, 0))
        aware = make_email(id="aware", sent_at=datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc))

        ordered = sorted([naive, aware], key=sort_key)

        assert [email.id for email in ordered] == ["aware", "naive"]

    @pytest.mark.parametrize(
        "total,limit,expected",
        [(0, 15, 0), (1, 15, 1), (15, 15, 1), (16, 15, 2), (100, 10, 10), (5, 0, 0)],
    )
    def test_total_pages(self, total, limit, expected):
        assert total_pages(total, limit) == expected

    def test_paginate_slices_by_offset(self):
        items = list(range(23))

        assert paginate(items, 1, 10) == list(range(10))
        assert paginate(items, 3, 10) == [20, 21, 22]
        assert paginate(items, 4, 10) == []

    def test_query_offset(self):
        assert EmailQuery(page=3, limit=15).offset == 30


@pytest.mark.unit
class TestBuildPage:
    """Test suite for build_page and filter options"""

    def test_build_page_counts_all_matches(self, user_emails):
        """
        Test page metadata

        Given: Four emails
        When: Page 2 of size 3 is requested
        Then: One email is returned and totals cover all matches
        """
        # Act
        page = build_page(user_emails, EmailQuery(page=2, limit=3))

        # Assert
        assert [email.id for email in page.emails] == ["e3"]
        assert page.total == 4
        assert page.current_page == 2
        assert page.page_size == 3
        assert page.total_pages == 2

    def test_build_page_with_filter(self, user_emails):
        page = build_page(user_emails, EmailQuery(category="Refund Issued"))

        assert [email.id for email in page.emails] == ["e4"]
        assert page.total == 1
        assert page.total_pages == 1

    def test_build_page_past_the_end_is_empty(self, user_emails):
        page = build_page(user_emails, EmailQuery(page=9, limit=15))

        assert page.emails == []
        assert page.total == 4

    def test_distinct_values_sorted_without_empties(self, make_email):
        emails = [
            make_email(folder="Sent"),
            make_email(folder="INBOX"),
            make_email(folder=None),
            make_email(folder=""),
            make_email(folder="INBOX"),
        ]
        assert distinct_values(emails, "folder") == ["INBOX", "Sent"]

    def test_filter_options(self, user_emails):
        options = filter_options(user_emails)

        assert options["accounts"] == ["store@example.com", "support@example.com"]
        assert options["folders"] == ["INBOX", "Promotions"]
        assert options["categories"] == [
            "Customer Inquiry",
            "Marketing/Promotions (from platforms)",
            "New Order",
            "Refund Issued",
        ]
