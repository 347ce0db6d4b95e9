import pytest
from pydantic import ValidationError

from contact_gateway.core.config import Settings


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


def test_defaults_match_contact_policy():
    s = make_settings()

    assert s.CONTACT_RATE_LIMIT == 10
    assert s.CONTACT_RATE_WINDOW_SECONDS == 900
    assert s.CONTACT_MAX_BODY_BYTES == 200_000
    assert s.CONTACT_GATES == ["challenge", "content"]
    assert s.CONTENT_FILTER_CHECKS == ["blacklist", "alphabet", "link"]
    assert s.DISALLOWED_CODEPOINT_RANGES == [(0x0400, 0x04FF)]
    assert (s.HOST, s.PORT) == ("127.0.0.1", 3000)


def test_legacy_mail_variable_names(monkeypatch):
    monkeypatch.setenv("MAIL_USER", "contact@example.org")
    monkeypatch.setenv("MAIL_PASS", "hunter2")
    monkeypatch.setenv("TURNSTILE_SECRET", "0x-secret")

    s = make_settings()

    assert s.SMTP_USER == "contact@example.org"
    assert s.SMTP_PASSWORD.get_secret_value() == "hunter2"
    assert s.TURNSTILE_SECRET.get_secret_value() == "0x-secret"
    assert s.mail_sender == "contact@example.org"


def test_gate_variants_from_environment(monkeypatch):
    monkeypatch.setenv("CONTACT_GATES", '["content"]')
    monkeypatch.setenv("CONTENT_FILTER_CHECKS", '["link"]')

    s = make_settings()

    assert s.CONTACT_GATES == ["content"]
    assert s.CONTENT_FILTER_CHECKS == ["link"]


@pytest.mark.parametrize(
    "field, value",
    [
        ("CONTACT_GATES", ["challenge", "captcha"]),
        ("CONTACT_GATES", ["content", "content"]),
        ("CONTENT_FILTER_CHECKS", ["profanity"]),
        ("DISALLOWED_CODEPOINT_RANGES", [(0x04FF, 0x0400)]),
    ],
)
def test_invalid_pipeline_configuration_rejected(field, value):
    with pytest.raises(ValidationError):
        make_settings(**{field: value})


def test_admin_address_required_in_production():
    with pytest.raises(ValidationError):
        make_settings(ENVIRONMENT="production", ADMIN_TO=None)

    s = make_settings(ENVIRONMENT="production", ADMIN_TO="admin@example.org")
    assert s.ADMIN_TO == "admin@example.org"
