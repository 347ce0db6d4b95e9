import smtplib
from email.message import EmailMessage
from unittest.mock import MagicMock, patch

import pytest
from pydantic import SecretStr

from contact_gateway.core import email as email_module
from contact_gateway.core.config import settings


@pytest.fixture(autouse=True)
def _smtp_settings(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.org", raising=False)
    monkeypatch.setattr(settings, "SMTP_PORT", 587, raising=False)
    monkeypatch.setattr(settings, "SMTP_USER", "user@example.org", raising=False)
    monkeypatch.setattr(settings, "SMTP_PASSWORD", SecretStr("pass"), raising=False)
    monkeypatch.setattr(settings, "SMTP_TIMEOUT", 7.0, raising=False)
    monkeypatch.setattr(settings, "SMTP_RETRIES", 0, raising=False)


def make_message():
    msg = EmailMessage()
    msg["To"] = "admin@example.org"
    msg["Subject"] = "Test"
    msg.set_content("body")
    return msg


def test_send_uses_starttls_and_login():
    server = MagicMock()
    with patch("contact_gateway.core.email.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value = server
        email_module.send_email(make_message())

    smtp_cls.assert_called_once_with("smtp.example.org", 587, timeout=7.0)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("user@example.org", "pass")
    server.send_message.assert_called_once()


def test_send_skips_login_without_credentials(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_PASSWORD", None)
    server = MagicMock()
    with patch("contact_gateway.core.email.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value = server
        email_module.send_email(make_message())

    server.login.assert_not_called()


def test_missing_host_raises(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", None)
    with pytest.raises(RuntimeError):
        email_module.send_email(make_message())


def test_error_propagates_without_retries():
    with patch.object(
        email_module, "_send_email_sync", side_effect=smtplib.SMTPServerDisconnected("bye")
    ) as send:
        with pytest.raises(smtplib.SMTPServerDisconnected):
            email_module.send_email(make_message())

    assert send.call_count == 1


def test_retries_then_succeeds():
    with patch.object(
        email_module,
        "_send_email_sync",
        side_effect=[OSError("timeout"), None],
    ) as send:
        email_module.send_email(make_message(), retries=1, retry_delay=0)

    assert send.call_count == 2
