from contact_gateway.schemas.contact import Language
from contact_gateway.services.auto_reply import (
    escape_message,
    render_auto_reply,
    success_text_for,
)


def test_english_variant():
    reply = render_auto_reply("Sam", "Hi there", "en")

    assert reply.subject == "Automatic reply"
    assert "Hello Sam," in reply.body
    assert "The Eldocam team" in reply.body
    assert reply.success_text == "Your message has been received."


def test_dutch_variant_accepts_enum():
    reply = render_auto_reply("Jan", "Hallo", Language.NL)

    assert reply.subject == "Automatisch antwoord"
    assert reply.success_text == "Je bericht is goed ontvangen."


def test_unknown_language_falls_back_to_french():
    for language in ("xx", "", None):
        reply = render_auto_reply("Marie", "Bonjour", language)
        assert reply.subject == "Réponse automatique"
        assert "Bonjour Marie," in reply.body
        assert reply.success_text == "Votre message a bien été envoyé."


def test_name_and_message_are_escaped():
    reply = render_auto_reply("<script>", "a < b\nc & d", "fr")

    assert "<script>" not in reply.body
    assert "&lt;script&gt;" in reply.body
    assert "a &lt; b<br>c &amp; d" in reply.body


def test_escape_message_keeps_line_breaks():
    assert escape_message('"x"\ny') == "&quot;x&quot;<br>y"


def test_success_text_matches_rendered_reply():
    for language in ("fr", "nl", "en", Language.EN, "xx", None):
        assert success_text_for(language) == render_auto_reply("A", "b", language).success_text
