"""Fixtures for route tests against the FastAPI app."""

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_auth_service, get_email_store, get_suggestion_service


@pytest.fixture
def app(email_store, auth_service, mock_suggestion_service):
    """Application with services swapped for the fake-Redis fixtures."""
    from src.main import app

    app.dependency_overrides[get_email_store] = lambda: email_store
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_suggestion_service] = lambda: mock_suggestion_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Test client (lifespan not run, so no real Redis is touched)."""
    return TestClient(app)


@pytest.fixture
async def user(auth_service):
    """Registered user with a password."""
    return await auth_service.create_user("owner@example.com", "s3cret-pass")


@pytest.fixture
async def owner_emails(email_store, sample_emails, user):
    """Sample mailbox reassigned to the registered user."""
    emails = [
        email.model_copy(update={"user_id": user.id}) if email.user_id == "user-1" else email
        for email in sample_emails
    ]
    await email_store.save_emails(emails)
    return emails


@pytest.fixture
def session(auth_service, user):
    """Signed-in session of the registered user."""
    return auth_service.issue_session(user)


@pytest.fixture
def auth_headers(session):
    """Bearer header for the signed-in user."""
    return {"Authorization": f"Bearer {session.access_token}"}


@pytest.fixture
def admin_headers():
    """Admin API key header."""
    return {"X-API-Key": "test-admin-key"}
