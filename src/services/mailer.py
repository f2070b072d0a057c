"""Outgoing mail for sign-in links."""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from src.config.settings import settings
from src.utils.logging import get_logger

logger = get_logger(__name__)


class MagicLinkMailer:
    """Send magic sign-in links over SMTP."""

    def __init__(self) -> None:
        self.config = settings.smtp

    @property
    def configured(self) -> bool:
        """Whether an SMTP server is configured."""
        return bool(self.config.host)

    def _build_message(self, recipient: str, link: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = "Your sign-in link"
        msg["From"] = self.config.from_email
        msg["To"] = recipient

        text = (
            "Use the link below to sign in to your email dashboard.\n\n"
            f"{link}\n\n"
            "If you did not request this, you can ignore this message."
        )
        html = (
            "<p>Use the link below to sign in to your email dashboard.</p>"
            f'<p><a href="{link}">Sign in</a></p>'
            "<p>If you did not request this, you can ignore this message.</p>"
        )
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    async def send_magic_link(self, recipient: str, link: str) -> bool:
        """
        Deliver a magic link.

        Without an SMTP host the link is logged instead, outside production.

        Returns:
            True if the link was handed to the SMTP server or logged
        """
        if not self.configured:
            if settings.app.env == "production":
                logger.error("SMTP not configured, cannot send magic link", recipient=recipient)
                return False
            logger.warning(
                "SMTP not configured, magic link logged instead of sent",
                recipient=recipient,
                link=link,
            )
            return True

        msg = self._build_message(recipient, link)

        def _send() -> None:
            with smtplib.SMTP(self.config.host, self.config.port) as server:
                if self.config.use_tls:
                    server.starttls()
                if self.config.username:
                    server.login(self.config.username, self.config.password.get_secret_value())
                server.sendmail(self.config.from_email, [recipient], msg.as_string())

        try:
            await asyncio.to_thread(_send)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send magic link", recipient=recipient, error=str(e))
            return False

        logger.info("Magic link sent", recipient=recipient)
        return True
