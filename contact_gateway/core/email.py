from __future__ import annotations

import logging
import smtplib
import time
from email.message import EmailMessage
from typing import Optional

from contact_gateway.core.config import settings

logger = logging.getLogger(__name__)


def _send_email_sync(message: EmailMessage) -> None:
    if not settings.SMTP_HOST:
        raise RuntimeError("SMTP_HOST is not configured")

    with smtplib.SMTP(
        settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT
    ) as server:
        server.starttls()
        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD.get_secret_value())
        server.send_message(message)


def send_email(
    message: EmailMessage,
    retries: Optional[int] = None,
    retry_delay: float = 1.0,
) -> None:
    """Deliver ``message`` over SMTP, re-raising the last error once retries run out."""
    if retries is None:
        retries = settings.SMTP_RETRIES

    last_error: Optional[Exception] = None
    for attempt in range(retries + 1):
        try:
            _send_email_sync(message)
            return
        except (smtplib.SMTPException, OSError, RuntimeError) as exc:
            last_error = exc
            logger.warning("Email send attempt %s failed: %s", attempt + 1, exc)
            if attempt < retries:
                time.sleep(retry_delay)

    if last_error:
        raise last_error
