from typing import Callable, List, Optional

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from contact_gateway.api.v1.contact import get_contact_pipeline
from contact_gateway.core.config import settings
from contact_gateway.core.rate_limiter import SlidingWindowRateLimiter, reset_rate_limiter_state
from contact_gateway.main import app
from contact_gateway.services.contact_pipeline import RequestPipeline
from contact_gateway.services.contact_service import NotificationDispatcher
from contact_gateway.services.content_filter import ContentFilter
from tests.fakes import ADMIN_TO, MAIL_FROM, FakeVerifier, RecordingSender


@pytest.fixture(autouse=True)
def _contact_settings(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_TO", ADMIN_TO, raising=False)
    monkeypatch.setattr(settings, "MAIL_FROM", MAIL_FROM, raising=False)
    monkeypatch.setattr(settings, "TURNSTILE_SECRET", SecretStr("test-secret"), raising=False)
    monkeypatch.setattr(settings, "CONTACT_MESSAGE_MIN_LENGTH", 3, raising=False)
    reset_rate_limiter_state()
    yield
    reset_rate_limiter_state()


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def make_pipeline(verifier, sender) -> Callable[..., RequestPipeline]:
    """Build a pipeline wired to the fakes; keyword arguments override parts."""

    def _make(
        gates: List[str] = ("challenge", "content"),
        checks: List[str] = ("blacklist", "alphabet", "link"),
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        max_body_bytes: int = 200_000,
    ) -> RequestPipeline:
        return RequestPipeline(
            rate_limiter=rate_limiter or SlidingWindowRateLimiter(10, 15 * 60),
            verifier=verifier,
            content_filter=ContentFilter(checks=checks),
            dispatcher=NotificationDispatcher(
                admin_to=ADMIN_TO, mail_from=MAIL_FROM, sender=sender
            ),
            gates=gates,
            max_body_bytes=max_body_bytes,
        )

    return _make


@pytest.fixture
def client(make_pipeline):
    """
    TestClient whose contact endpoint runs a pipeline wired to the fakes.
    The rate limiter is shared across requests of one test.
    """
    pipeline = make_pipeline()
    app.dependency_overrides[get_contact_pipeline] = lambda: pipeline

    with TestClient(app) as c:
        c.pipeline = pipeline
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def valid_form() -> dict:
    return {
        "name": "Marie Dupont",
        "email": "marie@example.org",
        "tel": "+32 470 12 34 56",
        "language": "fr",
        "message": "Bonjour, je voudrais un devis pour une installation.",
    }
