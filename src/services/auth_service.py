"""User authentication: passwords, magic links and sessions."""

import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import redis.asyncio as aioredis
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from src.config.settings import settings
from src.models.user import Session, User
from src.services.mailer import MagicLinkMailer
from src.utils.logging import get_logger

logger = get_logger(__name__)

PASSWORD_SCHEME = "pbkdf2_sha256"
MAGIC_LINK_SENT_MESSAGE = "Check your email for the magic link!"
MISSING_EMAIL_MESSAGE = "Please enter your email address to receive a magic link."


class AuthError(Exception):
    """Base class for sign-in failures shown to the user."""

    pass


class InvalidCredentialsError(AuthError):
    """Email/password pair did not match."""

    pass


class UserExistsError(AuthError):
    """A user with this email already exists."""

    pass


class InvalidMagicLinkError(AuthError):
    """Magic link is unknown, expired or already used."""

    pass


class MissingEmailError(AuthError):
    """No email address was given."""

    pass


def hash_password(password: str, iterations: int, salt: Optional[bytes] = None) -> str:
    """
    Hash a password with PBKDF2-HMAC-SHA256.

    Args:
        password: Plain-text password
        iterations: PBKDF2 iteration count
        salt: Salt to use (random 16 bytes if not given)

    Returns:
        Encoded hash ``pbkdf2_sha256$<iterations>$<salt>$<digest>``
    """
    salt = salt or secrets.token_bytes(16)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    digest = kdf.derive(password.encode())
    return "$".join([
        PASSWORD_SCHEME,
        str(iterations),
        base64.b64encode(salt).decode(),
        base64.b64encode(digest).decode(),
    ])


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a hash produced by ``hash_password``."""
    try:
        scheme, iterations, salt_b64, digest_b64 = encoded.split("$")
    except ValueError:
        return False

    if scheme != PASSWORD_SCHEME:
        return False

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=base64.b64decode(salt_b64),
        iterations=int(iterations),
    )
    try:
        kdf.verify(password.encode(), base64.b64decode(digest_b64))
    except InvalidKey:
        return False
    return True


class AuthService:
    """Sign-in, sign-out and session validation backed by Redis."""

    def __init__(self, mailer: Optional[MagicLinkMailer] = None) -> None:
        """Initialize auth configuration."""
        self.config = settings.auth
        self.redis_config = settings.redis
        self.redis: Optional[aioredis.Redis] = None
        self.mailer = mailer or MagicLinkMailer()

    async def connect(self) -> None:
        """Connect to Redis."""
        self.redis = await aioredis.from_url(self.redis_config.url, decode_responses=True)
        logger.info("Auth service connected to Redis")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    def _key(self, *parts: str) -> str:
        return self.redis_config.key_prefix + ":".join(parts)

    # -- Users -------------------------------------------------------------

    async def create_user(self, email: str, password: Optional[str] = None) -> User:
        """
        Register a user.

        Args:
            email: Sign-in email address
            password: Password, or None for magic-link-only accounts

        Returns:
            Created user

        Raises:
            MissingEmailError: If email is empty
            UserExistsError: If the email is already registered
        """
        if not self.redis:
            await self.connect()

        if not email or not email.strip():
            raise MissingEmailError("Email address is required")

        user = User(email=email)
        if password:
            user.password_hash = hash_password(password, self.config.pbkdf2_iterations)

        # NX makes the email claim atomic
        claimed = await self.redis.set(self._key("user_email", user.email), user.id, nx=True)
        if not claimed:
            raise UserExistsError(f"User {user.email} already exists")

        await self.redis.set(self._key("user", user.id), user.model_dump_json())

        logger.info("User created", user_id=user.id, email=user.email)
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by ID."""
        if not self.redis:
            await self.connect()

        data = await self.redis.get(self._key("user", user_id))
        if data:
            return User.model_validate_json(data)
        return None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email address (case-insensitive)."""
        if not self.redis:
            await self.connect()

        user_id = await self.redis.get(self._key("user_email", email.strip().lower()))
        if not user_id:
            return None
        return await self.get_user(user_id)

    # -- Sessions ----------------------------------------------------------

    def issue_session(self, user: User) -> Session:
        """Create a signed access token for the user."""
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=self.config.token_expiry_seconds)
        payload = {
            "iss": self.config.jwt_issuer,
            "sub": user.id,
            "email": user.email,
            "iat": now,
            "exp": expires_at,
            "jti": secrets.token_hex(16),
        }
        token = jwt.encode(
            payload,
            self.config.jwt_secret.get_secret_value(),
            algorithm=self.config.jwt_algorithm,
        )
        return Session(
            access_token=token,
            user_id=user.id,
            email=user.email,
            issued_at=now,
            expires_at=expires_at,
        )

    def _decode(self, access_token: str) -> Optional[dict]:
        try:
            return jwt.decode(
                access_token,
                self.config.jwt_secret.get_secret_value(),
                algorithms=[self.config.jwt_algorithm],
                issuer=self.config.jwt_issuer,
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Access token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.debug("Access token rejected", error=str(e))
            return None

    async def get_session(self, access_token: Optional[str]) -> Optional[Session]:
        """
        Resolve an access token to its session.

        Returns:
            Session, or None if the token is missing, invalid, expired or
            signed out
        """
        if not access_token:
            return None

        payload = self._decode(access_token)
        if not payload:
            return None

        if not self.redis:
            await self.connect()

        if await self.redis.exists(self._key("revoked", payload["jti"])):
            logger.debug("Access token revoked", user_id=payload["sub"])
            return None

        return Session(
            access_token=access_token,
            user_id=payload["sub"],
            email=payload["email"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    async def sign_out(self, access_token: Optional[str]) -> None:
        """Revoke an access token for the rest of its lifetime."""
        payload = self._decode(access_token) if access_token else None
        if not payload:
            return

        if not self.redis:
            await self.connect()

        remaining = int(payload["exp"] - datetime.now(timezone.utc).timestamp())
        await self.redis.setex(self._key("revoked", payload["jti"]), max(remaining, 1), "1")
        logger.info("User signed out", user_id=payload["sub"])

    # -- Sign-in -----------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Raises:
            InvalidCredentialsError: If the user is unknown or the password
                does not match
        """
        user = await self.get_user_by_email(email) if email else None

        if not user or not user.password_hash or not verify_password(password or "", user.password_hash):
            logger.warning("Password sign-in failed", email=email)
            raise InvalidCredentialsError("Invalid login credentials")

        logger.info("Password sign-in succeeded", user_id=user.id)
        return self.issue_session(user)

    def _magic_key(self, token: str) -> str:
        # Only a digest of the token is stored
        return self._key("magic", hashlib.sha256(token.encode()).hexdigest())

    async def sign_in_with_otp(self, email: str) -> str:
        """
        Send a one-time sign-in link.

        Unknown addresses and failed deliveries get the same response as a
        sent link.

        Returns:
            Message to show the user

        Raises:
            MissingEmailError: If email is empty
        """
        if not email or not email.strip():
            raise MissingEmailError(MISSING_EMAIL_MESSAGE)

        user = await self.get_user_by_email(email)
        if not user:
            logger.info("Magic link requested for unknown email", email=email)
            return MAGIC_LINK_SENT_MESSAGE

        token = secrets.token_urlsafe(32)
        await self.redis.setex(self._magic_key(token), self.config.magic_link_ttl_seconds, user.id)

        link = f"{self.config.public_base_url}/auth/callback?token={token}"
        if not await self.mailer.send_magic_link(user.email, link):
            await self.redis.delete(self._magic_key(token))
            logger.error("Magic link not delivered", user_id=user.id)
            return MAGIC_LINK_SENT_MESSAGE

        logger.info("Magic link issued", user_id=user.id)
        return MAGIC_LINK_SENT_MESSAGE

    async def verify_magic_link(self, token: str) -> Session:
        """
        Exchange a magic-link token for a session.

        Tokens are single-use.

        Raises:
            InvalidMagicLinkError: If the token is unknown, expired or used
        """
        if not self.redis:
            await self.connect()

        user_id = await self.redis.getdel(self._magic_key(token)) if token else None
        user = await self.get_user(user_id) if user_id else None

        if not user:
            logger.warning("Magic link rejected")
            raise InvalidMagicLinkError("Sign-in link is invalid or has expired")

        logger.info("Magic link sign-in succeeded", user_id=user.id)
        return self.issue_session(user)
