"""Pytest configuration and fixtures for all tests."""

import os
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment variables before importing settings
os.environ["APP_ENV"] = "testing"
os.environ["LOG_FORMAT"] = "console"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["REDIS_KEY_PREFIX"] = "test:"
os.environ["AUTH_JWT_SECRET"] = "test-jwt-secret-with-enough-length-for-hs256"
os.environ["AUTH_PBKDF2_ITERATIONS"] = "1000"
os.environ["AUTH_PUBLIC_BASE_URL"] = "http://testserver"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["SUGGESTION_API_BASE_URL"] = "https://suggest.example.com/api"
os.environ["SMTP_HOST"] = ""


class FakePipeline:
    """Queue commands and run them against the fake client on execute()."""

    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.commands.append((name, args, kwargs))
            return self
        return queue

    async def execute(self):
        results = []
        for name, args, kwargs in self.commands:
            results.append(await getattr(self.redis, name)(*args, **kwargs))
        self.commands = []
        return results


def make_fake_redis() -> MagicMock:
    """
    Dict-backed stand-in for a redis.asyncio client.

    Covers the string and set commands the services use; every command is
    an AsyncMock so calls can be asserted on.
    """
    data: dict[str, str] = {}
    sets: dict[str, set] = {}
    redis = MagicMock()
    redis.data = data
    redis.sets = sets

    async def _get(key):
        return data.get(key)

    async def _set(key, value, nx=False, ex=None):
        if nx and key in data:
            return None
        data[key] = value
        return True

    async def _setex(key, ttl, value):
        data[key] = value
        return True

    async def _delete(*keys):
        deleted = 0
        for key in keys:
            if data.pop(key, None) is not None or sets.pop(key, None) is not None:
                deleted += 1
        return deleted

    async def _exists(*keys):
        return sum(1 for key in keys if key in data or key in sets)

    async def _getdel(key):
        return data.pop(key, None)

    async def _sadd(key, *members):
        before = len(sets.setdefault(key, set()))
        sets[key].update(members)
        return len(sets[key]) - before

    async def _srem(key, *members):
        members_before = sets.get(key, set())
        before = len(members_before)
        members_before.difference_update(members)
        return before - len(members_before)

    async def _smembers(key):
        return set(sets.get(key, set()))

    async def _scard(key):
        return len(sets.get(key, set()))

    async def _mget(keys):
        return [data.get(key) for key in keys]

    redis.get = AsyncMock(side_effect=_get)
    redis.set = AsyncMock(side_effect=_set)
    redis.setex = AsyncMock(side_effect=_setex)
    redis.delete = AsyncMock(side_effect=_delete)
    redis.exists = AsyncMock(side_effect=_exists)
    redis.getdel = AsyncMock(side_effect=_getdel)
    redis.sadd = AsyncMock(side_effect=_sadd)
    redis.srem = AsyncMock(side_effect=_srem)
    redis.smembers = AsyncMock(side_effect=_smembers)
    redis.scard = AsyncMock(side_effect=_scard)
    redis.mget = AsyncMock(side_effect=_mget)
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock()
    redis.pipeline = MagicMock(side_effect=lambda transaction=True: FakePipeline(redis))
    return redis


@pytest.fixture
def fake_redis():
    """Dict-backed Redis client."""
    return make_fake_redis()


@pytest.fixture
def email_store(fake_redis):
    """Email store wired to the fake Redis client."""
    from src.services.email_store import EmailStore

    store = EmailStore()
    store.redis = fake_redis
    return store


@pytest.fixture
def mock_mailer():
    """Mailer that accepts every link."""
    mailer = MagicMock()
    mailer.send_magic_link = AsyncMock(return_value=True)
    return mailer


@pytest.fixture
def auth_service(fake_redis, mock_mailer):
    """Auth service wired to the fake Redis client and mailer."""
    from src.services.auth_service import AuthService

    service = AuthService(mailer=mock_mailer)
    service.redis = fake_redis
    return service


@pytest.fixture
def mock_suggestion_service():
    """Suggestion client returning two canned replies."""
    service = MagicMock()
    service.suggest_replies = AsyncMock(return_value=["Sounds good!", "Happy to meet."])
    return service


@pytest.fixture
def make_email():
    """Factory for emails owned by user-1 unless overridden."""
    from src.models.email import EmailDocument

    def _make(**overrides):
        data = {
            "user_id": "user-1",
            "subject": "Order #1001 received",
            "from_address": "shop@example.com",
            "to_addresses": ["me@example.com"],
            "body_text": "Thanks for your order.",
            "sent_at": datetime(2024, 3, 4, 9, 30),
            "account": "store@example.com",
            "folder": "INBOX",
            "category": "New Order",
        }
        data.update(overrides)
        return EmailDocument(**data)

    return _make


@pytest.fixture
def sample_emails(make_email):
    """A small mailbox for user-1 plus one email of user-2."""
    return [
        make_email(id="e1", subject="Order #1001 received", sent_at=datetime(2024, 3, 4, 9, 30)),
        make_email(
            id="e2",
            subject="Where is my parcel?",
            from_address="alice@example.com",
            body_text="Tracking shows no movement",
            sent_at=datetime(2024, 3, 6, 12, 0),
            category="Customer Inquiry",
        ),
        make_email(
            id="e3",
            subject="Spring sale",
            from_address="promo@platform.example.com",
            sent_at=None,
            received_at=datetime(2024, 3, 1, 8, 0),
            account="support@example.com",
            folder="Promotions",
            category="Marketing/Promotions (from platforms)",
        ),
        make_email(
            id="e4",
            subject="Refund for order #998",
            body_text="Your refund has been issued",
            sent_at=datetime(2024, 3, 5, 17, 45),
            category="Refund Issued",
        ),
        make_email(id="other-1", user_id="user-2", subject="Not yours", account="private@example.com"),
    ]
