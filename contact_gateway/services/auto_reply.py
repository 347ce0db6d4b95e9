"""Localized acknowledgment mails sent back to the person who wrote in."""
from __future__ import annotations

import html
from dataclasses import dataclass

from contact_gateway.schemas.contact import DEFAULT_LANGUAGE


@dataclass(frozen=True)
class AutoReply:
    subject: str
    body: str
    success_text: str


_TEMPLATE = """
<div style="font-family: Arial, sans-serif; padding: 20px;">
    <h2>{greeting} {name},</h2>
    <p>{thanks}</p>
    <blockquote style="border-left: 4px solid #e80000; margin: 10px 0; padding-left: 10px;">{message}</blockquote>
    <p>{follow_up}</p>
    <p style="font-size:12px; color:#888;">{signature}</p>
</div>"""

_TEXTS = {
    "fr": {
        "subject": "Réponse automatique",
        "greeting": "Bonjour",
        "thanks": "Merci de nous avoir contactés ! Nous avons bien reçu votre message.",
        "follow_up": "Nous reviendrons vers vous dans les plus brefs délais.",
        "signature": "— L’équipe Eldocam",
        "success_text": "Votre message a bien été envoyé.",
    },
    "nl": {
        "subject": "Automatisch antwoord",
        "greeting": "Hallo",
        "thanks": "Bedankt voor uw bericht! We hebben uw aanvraag ontvangen.",
        "follow_up": "We nemen zo snel mogelijk contact met u op.",
        "signature": "— Het Eldocam-team",
        "success_text": "Je bericht is goed ontvangen.",
    },
    "en": {
        "subject": "Automatic reply",
        "greeting": "Hello",
        "thanks": "Thank you for contacting us! We have received your message.",
        "follow_up": "We will get back to you as soon as possible.",
        "signature": "— The Eldocam team",
        "success_text": "Your message has been received.",
    },
}


def escape_message(message: str) -> str:
    """HTML-escape a message and keep its line breaks visible."""
    return html.escape(message).replace("\n", "<br>")


def _texts_for(language) -> dict:
    code = getattr(language, "value", language) or DEFAULT_LANGUAGE
    return _TEXTS.get(str(code).lower(), _TEXTS[DEFAULT_LANGUAGE])


def success_text_for(language) -> str:
    """Plain-text confirmation returned to the browser for ``language``."""
    return _texts_for(language)["success_text"]


def render_auto_reply(name: str, message: str, language) -> AutoReply:
    """Render the acknowledgment for ``language``; unknown languages fall back to French."""
    texts = _texts_for(language)
    body = _TEMPLATE.format(
        greeting=texts["greeting"],
        name=html.escape(name),
        thanks=texts["thanks"],
        message=escape_message(message),
        follow_up=texts["follow_up"],
        signature=texts["signature"],
    )
    return AutoReply(
        subject=texts["subject"], body=body, success_text=texts["success_text"]
    )
