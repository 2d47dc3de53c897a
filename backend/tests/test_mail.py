"""Unit tests for SMTP mail sending (smtplib mocked)."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from projecthub.config import settings
from projecthub.services.mail import send_mail


@pytest.mark.asyncio
async def test_send_mail_skipped_without_host():
    with patch.object(settings, "smtp_host", ""):
        with patch("projecthub.services.mail.smtplib.SMTP") as smtp:
            assert await send_mail("a@b.test", "Hi", "Body") is False
    smtp.assert_not_called()


@pytest.mark.asyncio
async def test_send_mail_success():
    server = MagicMock()
    smtp = MagicMock()
    smtp.return_value.__enter__.return_value = server
    with patch.object(settings, "smtp_host", "smtp.test"), patch.object(settings, "smtp_user", ""):
        with patch("projecthub.services.mail.smtplib.SMTP", smtp):
            assert await send_mail("a@b.test", "Hi", "Body") is True
    smtp.assert_called_once_with("smtp.test", settings.smtp_port)
    server.starttls.assert_not_called()
    msg = server.send_message.call_args.args[0]
    assert msg["To"] == "a@b.test"
    assert msg["Subject"] == "Hi"


@pytest.mark.asyncio
async def test_send_mail_logs_in_with_credentials():
    server = MagicMock()
    smtp = MagicMock()
    smtp.return_value.__enter__.return_value = server
    with (
        patch.object(settings, "smtp_host", "smtp.test"),
        patch.object(settings, "smtp_user", "bot"),
        patch.object(settings, "smtp_password", "pw"),
        patch("projecthub.services.mail.smtplib.SMTP", smtp),
    ):
        assert await send_mail("a@b.test", "Hi", "Body") is True
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("bot", "pw")


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [OSError("refused"), smtplib.SMTPException("boom")])
async def test_send_mail_failure_returns_false(error):
    with patch.object(settings, "smtp_host", "smtp.test"):
        with patch("projecthub.services.mail.smtplib.SMTP", side_effect=error):
            assert await send_mail("a@b.test", "Hi", "Body") is False
