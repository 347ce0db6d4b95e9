from __future__ import annotations

import logging
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Callable, Optional

from contact_gateway.core.config import settings
from contact_gateway.core.email import send_email
from contact_gateway.schemas.contact import SubmittedForm
from contact_gateway.services.auto_reply import (
    AutoReply,
    render_auto_reply,
    success_text_for,
)

logger = logging.getLogger(__name__)

Sender = Callable[[EmailMessage], None]
Renderer = Callable[[str, str, str], AutoReply]


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one mail leg."""

    sent: bool
    error: Optional[Exception] = None


@dataclass(frozen=True)
class DispatchOutcome:
    admin_sent: bool
    admin_error: Optional[Exception]
    reply_sent: bool
    reply_error: Optional[Exception]
    success_text: str

    @property
    def error(self) -> Optional[Exception]:
        """The error the caller must act on; acknowledgment errors never count."""
        if self.admin_sent:
            return None
        return self.admin_error or RuntimeError("administrator notification not sent")


def combine_outcomes(
    admin: DeliveryResult,
    reply: Optional[DeliveryResult],
    success_text: str,
) -> DispatchOutcome:
    """Merge both legs: an admin failure is fatal, a reply failure is not.

    ``reply`` is None when the acknowledgment was never attempted.
    """
    if not admin.sent:
        return DispatchOutcome(
            admin_sent=False,
            admin_error=admin.error,
            reply_sent=False,
            reply_error=None,
            success_text="",
        )

    reply = reply or DeliveryResult(sent=False)
    return DispatchOutcome(
        admin_sent=True,
        admin_error=None,
        reply_sent=reply.sent,
        reply_error=reply.error,
        success_text=success_text,
    )


class NotificationDispatcher:
    """Sends the administrator notification, then the submitter acknowledgment."""

    def __init__(
        self,
        admin_to: Optional[str],
        mail_from: Optional[str],
        sender: Sender = send_email,
        renderer: Renderer = render_auto_reply,
    ):
        self.admin_to = admin_to
        self.mail_from = mail_from
        self._send = sender
        self._render = renderer

    @classmethod
    def from_settings(cls) -> "NotificationDispatcher":
        return cls(admin_to=settings.ADMIN_TO, mail_from=settings.mail_sender)

    def build_admin_message(self, form: SubmittedForm) -> EmailMessage:
        if not self.admin_to:
            raise RuntimeError("ADMIN_TO not configured")

        msg = EmailMessage()
        if self.mail_from:
            msg["From"] = self.mail_from
        msg["To"] = self.admin_to
        msg["Reply-To"] = form.email
        msg["Subject"] = f"Prise de contact de {form.name}"

        body_lines = [
            f"Nom: {form.name}",
            f"Email: {form.email}",
            f"Tel: {form.phone}",
            "Message:",
            form.message,
        ]
        msg.set_content("\n".join(body_lines))
        return msg

    def build_reply_message(self, form: SubmittedForm, reply: AutoReply) -> EmailMessage:
        msg = EmailMessage()
        if self.mail_from:
            msg["From"] = self.mail_from
        msg["To"] = form.email
        msg["Subject"] = reply.subject
        msg.set_content(reply.body, subtype="html")
        return msg

    def _deliver(self, build: Callable[[], EmailMessage]) -> DeliveryResult:
        try:
            self._send(build())
        except Exception as exc:
            return DeliveryResult(sent=False, error=exc)
        return DeliveryResult(sent=True)

    def dispatch(self, form: SubmittedForm) -> DispatchOutcome:
        admin = self._deliver(lambda: self.build_admin_message(form))
        if not admin.sent:
            logger.error("Contact admin notification failed: %s", admin.error)
            return combine_outcomes(admin, None, "")

        reply = self._deliver(
            lambda: self.build_reply_message(
                form, self._render(form.name, form.message, form.language.value)
            )
        )
        if reply.sent:
            logger.info("Contact auto-reply sent to %s", form.email)
        else:
            logger.error(
                "Contact auto-reply to %s failed: %s", form.email, reply.error
            )

        return combine_outcomes(admin, reply, success_text_for(form.language))
