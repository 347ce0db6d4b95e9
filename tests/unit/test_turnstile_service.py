from unittest.mock import MagicMock

import pytest
import requests
from pydantic import SecretStr

from contact_gateway.core.config import settings
from contact_gateway.services.turnstile_service import TurnstileService

VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


def make_response(status_code=200, payload=None, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def service(session):
    return TurnstileService(secret="s3cret", verify_url=VERIFY_URL, timeout=5, session=session)


def test_success_verdict(service, session):
    session.post.return_value = make_response(payload={"success": True})

    assert service.verify("token-123", "203.0.113.7") is True
    session.post.assert_called_once_with(
        VERIFY_URL,
        data={"secret": "s3cret", "response": "token-123", "remoteip": "203.0.113.7"},
        timeout=5,
    )


def test_negative_verdict(service, session):
    session.post.return_value = make_response(
        payload={"success": False, "error-codes": ["invalid-input-response"]}
    )
    assert service.verify("token-123", "203.0.113.7") is False


def test_missing_secret_fails_closed_without_calling(session):
    service = TurnstileService(secret=None, verify_url=VERIFY_URL, session=session)

    assert service.verify("token-123") is False
    session.post.assert_not_called()


def test_missing_token_fails_closed_without_calling(service, session):
    assert service.verify("", "203.0.113.7") is False
    session.post.assert_not_called()


@pytest.mark.parametrize(
    "error",
    [requests.exceptions.Timeout("slow"), requests.exceptions.ConnectionError("down")],
)
def test_transport_errors_fail_closed(service, session, error):
    session.post.side_effect = error
    assert service.verify("token-123", "203.0.113.7") is False


def test_non_200_fails_closed(service, session):
    session.post.return_value = make_response(status_code=502, payload={"success": True})
    assert service.verify("token-123") is False


def test_undecodable_body_fails_closed(service, session):
    session.post.return_value = make_response(json_error=ValueError("not json"))
    assert service.verify("token-123") is False


@pytest.mark.parametrize("payload", [[True], {"success": "true"}, {}])
def test_unexpected_payload_fails_closed(service, session, payload):
    session.post.return_value = make_response(payload=payload)
    assert service.verify("token-123") is False


def test_remote_ip_omitted_when_unknown(service, session):
    session.post.return_value = make_response(payload={"success": True})

    service.verify("token-123")

    assert "remoteip" not in session.post.call_args.kwargs["data"]


def test_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "TURNSTILE_SECRET", SecretStr("from-env"))
    monkeypatch.setattr(settings, "TURNSTILE_TIMEOUT", 3.0)

    service = TurnstileService.from_settings()

    assert service.secret == "from-env"
    assert service.timeout == 3.0
    assert service.verify_url == settings.TURNSTILE_VERIFY_URL
