"""Redis-backed email storage."""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.config.settings import settings
from src.models.email import EmailDocument
from src.utils.email_query import (
    EmailPage,
    EmailQuery,
    build_page,
    filter_options,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)


class EmailStoreError(Exception):
    """Email store read or write failed."""

    pass


class EmailStore:
    """
    Per-user email storage on Redis.

    Each email is stored as JSON under ``email:{id}``; ``user:{user_id}:emails``
    holds the ids a user owns. Every read goes through the owner's index,
    so one user never sees another user's mail.
    """

    def __init__(self) -> None:
        """Initialize store configuration."""
        self.config = settings.redis
        self.redis: Optional[aioredis.Redis] = None
        logger.info("Email store initialized", redis_url=self.config.url)

    async def connect(self) -> None:
        """Connect to Redis."""
        self.redis = await aioredis.from_url(self.config.url, decode_responses=True)
        logger.info("Connected to Redis")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    def _email_key(self, email_id: str) -> str:
        return f"{self.config.key_prefix}email:{email_id}"

    def _user_index_key(self, user_id: str) -> str:
        return f"{self.config.key_prefix}user:{user_id}:emails"

    async def save_email(self, email: EmailDocument) -> str:
        """
        Insert or replace one email.

        Args:
            email: Email to store

        Returns:
            Email ID
        """
        await self.save_emails([email])
        return email.id

    async def save_emails(self, emails: list[EmailDocument]) -> int:
        """
        Insert or replace emails in one round trip.

        Args:
            emails: Emails to store (may belong to different users)

        Returns:
            Number of emails written
        """
        if not emails:
            return 0

        if not self.redis:
            await self.connect()

        previous_owners = await self._current_owners([email.id for email in emails])

        pipeline = self.redis.pipeline(transaction=True)
        for email in emails:
            previous_owner = previous_owners.get(email.id)
            if previous_owner and previous_owner != email.user_id:
                pipeline.srem(self._user_index_key(previous_owner), email.id)
            pipeline.set(self._email_key(email.id), email.model_dump_json())
            pipeline.sadd(self._user_index_key(email.user_id), email.id)
        await pipeline.execute()

        logger.info(
            "Emails saved",
            count=len(emails),
            users=sorted({email.user_id for email in emails}),
        )
        return len(emails)

    async def get_email(self, user_id: str, email_id: str) -> Optional[EmailDocument]:
        """Get one email if it exists and belongs to the user."""
        if not self.redis:
            await self.connect()

        data = await self.redis.get(self._email_key(email_id))
        if not data:
            return None

        email = EmailDocument.model_validate_json(data)
        if email.user_id != user_id:
            logger.warning(
                "Email requested by non-owner",
                email_id=email_id,
                user_id=user_id,
            )
            return None

        return email

    async def delete_email(self, user_id: str, email_id: str) -> bool:
        """
        Delete one email owned by the user.

        Returns:
            True if the email was deleted, False if not found
        """
        email = await self.get_email(user_id, email_id)
        if not email:
            return False

        pipeline = self.redis.pipeline(transaction=True)
        pipeline.delete(self._email_key(email_id))
        pipeline.srem(self._user_index_key(user_id), email_id)
        await pipeline.execute()

        logger.info("Email deleted", email_id=email_id, user_id=user_id)
        return True

    async def _current_owners(self, email_ids: list[str]) -> dict[str, str]:
        """Owner of each already stored email, keyed by email ID."""
        values = await self.redis.mget([self._email_key(email_id) for email_id in email_ids])
        return {
            email_id: EmailDocument.model_validate_json(value).user_id
            for email_id, value in zip(email_ids, values)
            if value
        }

    async def list_emails(self, user_id: str) -> list[EmailDocument]:
        """
        Get every email the user owns, unordered.

        Index entries whose document is gone or now belongs to another
        user are removed from the user's index.
        """
        if not self.redis:
            await self.connect()

        index_key = self._user_index_key(user_id)
        email_ids = list(await self.redis.smembers(index_key))
        if not email_ids:
            return []

        values = await self.redis.mget([self._email_key(email_id) for email_id in email_ids])

        emails = []
        stale_ids = []
        for email_id, value in zip(email_ids, values):
            email = EmailDocument.model_validate_json(value) if value else None
            if email is None or email.user_id != user_id:
                stale_ids.append(email_id)
                continue
            emails.append(email)

        if stale_ids:
            logger.warning("Removing stale index entries", user_id=user_id, count=len(stale_ids))
            await self.redis.srem(index_key, *stale_ids)

        return emails

    async def fetch_emails(self, user_id: str, query: EmailQuery) -> EmailPage:
        """
        Fetch one page of the user's emails.

        Args:
            user_id: Owner whose mail is listed
            query: Search, filters and pagination

        Returns:
            Page of emails sorted newest-sent first, with totals and
            dropdown options

        Raises:
            EmailStoreError: If the emails cannot be read
        """
        logger.info("Fetching emails", user_id=user_id, page=query.page, limit=query.limit, **query.filters)

        try:
            emails = await self.list_emails(user_id)
        except RedisError as e:
            logger.error("Failed to load emails", user_id=user_id, error=str(e))
            raise EmailStoreError(f"Failed to load emails: {e}") from e

        page = build_page(emails, query)
        options = filter_options(emails)
        page.accounts = options["accounts"]
        page.folders = options["folders"]
        page.categories = options["categories"]

        logger.info(
            "Emails fetched",
            user_id=user_id,
            total=page.total,
            page=page.current_page,
            total_pages=page.total_pages,
        )
        return page

    async def count_emails(self, user_id: str) -> int:
        """Number of emails the user owns, counted the same way the list is."""
        return len(await self.list_emails(user_id))
