"""
Admission pipeline for contact submissions.

Stages run strictly in order and each one can end the request:

    rate limit -> decode + validation -> gates (challenge, content) -> dispatch

The order of the post-decode gates comes from CONTACT_GATES. A rate-limit
slot is consumed as soon as the request is admitted, whatever happens next.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple
from urllib.parse import parse_qs

from pydantic import ValidationError

from contact_gateway.core.config import settings
from contact_gateway.core.errors import (
    ChallengeFailed,
    ContentRejected,
    DeliveryFailed,
    MalformedInput,
    RateLimited,
    ValidationFailed,
)
from contact_gateway.core.rate_limiter import SlidingWindowRateLimiter, contact_rate_limiter
from contact_gateway.schemas.contact import SubmittedForm
from contact_gateway.services.contact_service import DispatchOutcome, NotificationDispatcher
from contact_gateway.services.content_filter import ContentFilter
from contact_gateway.services.turnstile_service import TurnstileService

logger = logging.getLogger(__name__)

TOKEN_FIELD = "cf-turnstile-response"
FORM_FIELDS = ("name", "email", "tel", "language", "message")

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class PipelineState(str, Enum):
    RATE_DENIED = "rate_denied"
    MALFORMED_INPUT = "malformed_input"
    CHALLENGE_FAILED = "challenge_failed"
    CONTENT_REJECTED = "content_rejected"
    DISPATCH_FAILED = "dispatch_failed"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ContactSubmission:
    """Raw inbound request, before any decoding."""

    identity: str
    content_type: Optional[str]
    body: bytes
    query_token: Optional[str] = None


def _log_rejection(state: PipelineState, identity: str, reason: str) -> None:
    logger.warning(
        "Contact rejected stage=%s client=%s reason=%s",
        state.value,
        identity,
        reason,
        extra={"audit_event": "contact_rejected", "stage": state.value},
    )


class RequestPipeline:
    def __init__(
        self,
        rate_limiter: SlidingWindowRateLimiter,
        verifier: TurnstileService,
        content_filter: ContentFilter,
        dispatcher: NotificationDispatcher,
        gates: Sequence[str] = ("challenge", "content"),
        max_body_bytes: int = 200_000,
    ):
        self.rate_limiter = rate_limiter
        self.verifier = verifier
        self.content_filter = content_filter
        self.dispatcher = dispatcher
        self.max_body_bytes = max_body_bytes
        self._gates = {
            "challenge": self._check_challenge,
            "content": self._check_content,
        }
        unknown = [gate for gate in gates if gate not in self._gates]
        if unknown:
            raise ValueError(f"Unknown pipeline gates: {unknown}")
        self.gates = tuple(gates)

    @classmethod
    def from_settings(cls) -> "RequestPipeline":
        return cls(
            rate_limiter=contact_rate_limiter,
            verifier=TurnstileService.from_settings(),
            content_filter=ContentFilter.from_settings(),
            dispatcher=NotificationDispatcher.from_settings(),
            gates=settings.CONTACT_GATES,
            max_body_bytes=settings.CONTACT_MAX_BODY_BYTES,
        )

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(
        self, content_type: Optional[str], body: bytes
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        """Return the raw form fields and the challenge token found in the body."""
        if len(body) > self.max_body_bytes:
            raise MalformedInput(f"body exceeds {self.max_body_bytes} bytes")

        media_type = (content_type or "").strip().lower()

        if media_type.startswith(JSON_CONTENT_TYPE):
            try:
                payload = json.loads(body)
            except (ValueError, RecursionError) as exc:
                raise MalformedInput(f"invalid JSON body: {exc}") from exc
            if not isinstance(payload, dict):
                raise MalformedInput("JSON body is not an object")
            token = payload.pop(TOKEN_FIELD, None)
            return payload, token if isinstance(token, str) else None

        if media_type.startswith(FORM_CONTENT_TYPE):
            try:
                text = body.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedInput("form body is not valid UTF-8") from exc
            parsed = parse_qs(text, keep_blank_values=True)
            fields = {key: parsed[key][0] for key in FORM_FIELDS if key in parsed}
            token = parsed.get(TOKEN_FIELD, [None])[0]
            return fields, token

        raise MalformedInput(f"unsupported content type: {content_type!r}")

    def validate(self, fields: Dict[str, Any]) -> SubmittedForm:
        try:
            return SubmittedForm.model_validate(fields)
        except ValidationError as exc:
            invalid = sorted({".".join(map(str, err["loc"])) for err in exc.errors()})
            raise ValidationFailed(f"invalid fields: {', '.join(invalid)}") from exc

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _check_challenge(
        self, form: SubmittedForm, token: Optional[str], identity: str
    ) -> None:
        if not token:
            _log_rejection(PipelineState.CHALLENGE_FAILED, identity, "missing token")
            raise ChallengeFailed("missing challenge token")
        if not self.verifier.verify(token, identity):
            _log_rejection(PipelineState.CHALLENGE_FAILED, identity, "verification failed")
            raise ChallengeFailed("challenge verification failed")

    def _check_content(
        self, form: SubmittedForm, token: Optional[str], identity: str
    ) -> None:
        violation = self.content_filter.first_violation(form)
        if violation is not None:
            _log_rejection(PipelineState.CONTENT_REJECTED, identity, violation)
            raise ContentRejected(violation)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def process(self, submission: ContactSubmission) -> DispatchOutcome:
        """Run every stage for one request.

        Raises a ContactError subclass for the first stage that rejects the
        request; returns the dispatch outcome once the administrator has been
        notified.
        """
        identity = submission.identity

        if not self.rate_limiter.admit(identity):
            _log_rejection(PipelineState.RATE_DENIED, identity, "rate limit exceeded")
            raise RateLimited("rate limit exceeded")

        try:
            fields, token = self.decode(submission.content_type, submission.body)
            form = self.validate(fields)
        except (MalformedInput, ValidationFailed) as exc:
            _log_rejection(PipelineState.MALFORMED_INPUT, identity, str(exc))
            raise

        token = token or submission.query_token
        for gate in self.gates:
            self._gates[gate](form, token, identity)

        outcome = self.dispatcher.dispatch(form)
        if outcome.error is not None:
            _log_rejection(PipelineState.DISPATCH_FAILED, identity, "admin send failed")
            raise DeliveryFailed(str(outcome.error)) from outcome.error

        logger.info(
            "AUDIT: Contact request accepted language=%s reply_sent=%s",
            form.language.value,
            outcome.reply_sent,
            extra={
                "audit_event": "contact_request_accepted",
                "stage": PipelineState.COMPLETED.value,
                "reply_sent": outcome.reply_sent,
            },
        )
        return outcome
