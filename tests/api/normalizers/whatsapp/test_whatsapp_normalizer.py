"""Testes do normalizer WhatsApp Cloud API."""

from __future__ import annotations

import pytest

from api.normalizers.whatsapp import WhatsAppNormalizer
from app.constants.ingestion import Channel, ContentType, Direction
from app.protocols.normalizer import NormalizationError
from tests.fakes.ingestion import FIXED_NOW, make_raw, whatsapp_payload


def _raw(payload, message_id: str = "wamid.HBgM001"):
    return make_raw(
        payload,
        provider_type="whatsapp",
        provider_message_id=message_id,
        provider_id="PNID1",
        channel=Channel.WHATSAPP,
    )


def _message(message_type: str, block, **extra):
    return {
        "id": "wamid.X",
        "from": "12345678901",
        "timestamp": "1773144000",
        "type": message_type,
        message_type: block,
        **extra,
    }


class TestTextMessages:
    def test_text_message(self) -> None:
        message = WhatsAppNormalizer().normalize(_raw(whatsapp_payload()))

        assert message.channel == Channel.WHATSAPP
        assert message.direction == Direction.INBOUND
        assert message.from_contact.normalized_value == "+12345678901"
        assert message.to_contact.normalized_value == "+15550001111"
        assert message.body == "Olá, preciso de ajuda"
        assert message.timestamp == FIXED_NOW
        assert message.provider_meta["profile_name"] == "Maria Silva"
        assert message.provider_meta["phone_number_id"] == "PNID1"

    def test_reply_context_salts_thread_key(self) -> None:
        payload = whatsapp_payload(
            message=_message("text", {"body": "sim"}, context={"id": "wamid.ORIGINAL"})
        )

        message = WhatsAppNormalizer().normalize(_raw(payload, "wamid.X"))

        assert message.thread_key.endswith(":reply:wamid.ORIGINAL")
        assert message.provider_meta["context_message_id"] == "wamid.ORIGINAL"

    def test_interactive_reply_uses_title(self) -> None:
        block = {"type": "button_reply", "button_reply": {"id": "opt_1", "title": "Sim"}}
        payload = whatsapp_payload(message=_message("interactive", block))

        assert WhatsAppNormalizer().normalize(_raw(payload, "wamid.X")).body == "Sim"

    def test_location_is_summarized(self) -> None:
        block = {"latitude": -23.5, "longitude": -46.6, "name": "Loja"}
        payload = whatsapp_payload(message=_message("location", block))

        message = WhatsAppNormalizer().normalize(_raw(payload, "wamid.X"))

        assert message.content_type == ContentType.LOCATION
        assert message.body == "Location: -23.5, -46.6 (Loja)"

    def test_reaction_keeps_target(self) -> None:
        block = {"message_id": "wamid.TARGET", "emoji": "👍"}
        payload = whatsapp_payload(message=_message("reaction", block))

        message = WhatsAppNormalizer().normalize(_raw(payload, "wamid.X"))

        assert message.body == "👍"
        assert message.provider_meta["reaction_to"] == "wamid.TARGET"


class TestMediaMessages:
    def test_image_is_pending_resolution(self) -> None:
        block = {"id": "MEDIA_1", "mime_type": "image/jpeg", "caption": "pedido"}
        payload = whatsapp_payload(message=_message("image", block))

        message = WhatsAppNormalizer().normalize(_raw(payload, "wamid.X"))

        assert message.content_type == ContentType.IMAGE
        assert message.body == "pedido"
        attachment = message.attachments[0]
        assert attachment.media_id == "MEDIA_1"
        assert attachment.is_resolved is False

    def test_sticker_counts_as_image(self) -> None:
        payload = whatsapp_payload(message=_message("sticker", {"id": "STK"}))

        message = WhatsAppNormalizer().normalize(_raw(payload, "wamid.X"))

        assert message.content_type == ContentType.IMAGE
        assert message.body is None


class TestStatusesAndErrors:
    def test_status_is_outbound_echo(self) -> None:
        statuses = [
            {
                "id": "wamid.SENT1",
                "status": "delivered",
                "timestamp": "1773144000",
                "recipient_id": "12345678901",
            }
        ]
        payload = whatsapp_payload(statuses=statuses)

        message = WhatsAppNormalizer().normalize(_raw(payload, "wamid.SENT1"))

        assert message.direction == Direction.OUTBOUND
        assert message.provider_message_id == "wamid.SENT1"
        assert message.to_contact.normalized_value == "+12345678901"
        assert message.provider_meta["status"] == "delivered"

    def test_selects_event_by_id(self) -> None:
        payload = whatsapp_payload()
        value = payload["entry"][0]["changes"][0]["value"]
        value["messages"].append(
            {"id": "wamid.SECOND", "from": "12345678901", "type": "text", "text": {"body": "2"}}
        )

        message = WhatsAppNormalizer().normalize(_raw(payload, "wamid.SECOND"))

        assert message.body == "2"

    def test_envelope_without_events(self) -> None:
        payload = whatsapp_payload(statuses=[])

        with pytest.raises(NormalizationError):
            WhatsAppNormalizer().normalize(_raw(payload))

    def test_missing_entry_is_invalid(self) -> None:
        with pytest.raises(NormalizationError):
            WhatsAppNormalizer().normalize(_raw({"object": "whatsapp_business_account"}))
