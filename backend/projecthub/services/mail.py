"""Outgoing mail over SMTP. Failures are logged and reported as False, never raised."""

import logging
import smtplib
from email.mime.text import MIMEText

from starlette.concurrency import run_in_threadpool

from projecthub.config import settings

logger = logging.getLogger(__name__)


def _send_sync(to: str, subject: str, text: str) -> None:
    msg = MIMEText(text, "plain")
    msg["From"] = settings.mail_from
    msg["To"] = to
    msg["Subject"] = subject
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
        if settings.smtp_user and settings.smtp_password:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
        server.send_message(msg)


async def send_mail(to: str, subject: str, text: str) -> bool:
    if not settings.smtp_host:
        logger.warning("SMTP_HOST not configured. Skipping mail to %s", to)
        return False
    try:
        await run_in_threadpool(_send_sync, to, subject, text)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send mail to %s: %s", to, e)
        return False
    logger.info("Mail sent to %s", to)
    return True
