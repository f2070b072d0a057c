"""
Unit tests for the magic link mailer

Tests SMTP delivery and the unconfigured fallback
"""
import smtplib
from unittest.mock import MagicMock, patch

import pytest

from src.services.mailer import MagicLinkMailer


@pytest.fixture
def smtp_mailer():
    """Mailer with an SMTP server configured."""
    mailer = MagicLinkMailer()
    mailer.config = mailer.config.model_copy(
        update={"host": "smtp.example.com", "username": "mailer", "from_email": "login@example.com"}
    )
    return mailer


@pytest.mark.unit
@pytest.mark.auth
class TestMagicLinkMailer:
    """Test suite for Magic Link Mailer"""

    async def test_unconfigured_logs_link_outside_production(self):
        mailer = MagicLinkMailer()

        assert not mailer.configured
        assert await mailer.send_magic_link("owner@example.com", "http://testserver/auth/callback?token=t") is True

    async def test_unconfigured_fails_in_production(self):
        mailer = MagicLinkMailer()

        with patch("src.services.mailer.settings") as mock_settings:
            mock_settings.app.env = "production"
            assert await mailer.send_magic_link("owner@example.com", "http://x/auth/callback?token=t") is False

    async def test_sends_over_smtp(self, smtp_mailer):
        """
        Test SMTP delivery

        Given: A configured SMTP server
        When: send_magic_link() is called
        Then: The message is sent with STARTTLS and login, and contains the link
        """
        # Arrange
        server = MagicMock()
        smtp_class = MagicMock()
        smtp_class.return_value.__enter__.return_value = server

        # Act
        with patch("smtplib.SMTP", smtp_class):
            sent = await smtp_mailer.send_magic_link("owner@example.com", "http://x/auth/callback?token=abc")

        # Assert
        assert sent is True
        smtp_class.assert_called_once_with("smtp.example.com", 587)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "")
        from_addr, to_addrs, body = server.sendmail.call_args.args
        assert from_addr == "login@example.com"
        assert to_addrs == ["owner@example.com"]
        assert "token=abc" in body

    async def test_smtp_failure_returns_false(self, smtp_mailer):
        smtp_class = MagicMock(side_effect=smtplib.SMTPConnectError(421, "unavailable"))

        with patch("smtplib.SMTP", smtp_class):
            assert await smtp_mailer.send_magic_link("owner@example.com", "http://x") is False
