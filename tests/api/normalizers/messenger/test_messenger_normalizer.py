"""Testes do normalizer Messenger (Facebook/Instagram)."""

from __future__ import annotations

import pytest

from api.normalizers.messenger import MessengerNormalizer
from app.constants.ingestion import Channel, ContactType, ContentType, Direction
from app.protocols.normalizer import NormalizationError
from tests.fakes.ingestion import FIXED_NOW, make_raw, messenger_payload


def _raw(payload, provider_type: str = "facebook", message_id: str = "m_abc123"):
    return make_raw(
        payload,
        provider_type=provider_type,
        provider_message_id=message_id,
        provider_id="PAGE_2002",
        channel=provider_type,
    )


class TestMessengerNormalizer:
    def test_inbound_text(self) -> None:
        message = MessengerNormalizer().normalize(_raw(messenger_payload()))

        assert message.channel == Channel.FACEBOOK
        assert message.direction == Direction.INBOUND
        assert message.from_contact.type == ContactType.SOCIAL
        assert message.from_contact.normalized_value == "psid_1001"
        assert message.body == "Do you ship to Canada?"
        assert message.timestamp == FIXED_NOW

    def test_instagram_channel(self) -> None:
        normalizer = MessengerNormalizer(Channel.INSTAGRAM)

        message = normalizer.normalize(_raw(messenger_payload(), "instagram"))

        assert message.channel == Channel.INSTAGRAM
        assert message.thread_key.startswith("instagram:")

    def test_echo_is_outbound(self) -> None:
        payload = messenger_payload(is_echo=True, sender_id="PAGE_2002", recipient_id="PSID_1001")

        assert MessengerNormalizer().normalize(_raw(payload)).direction == Direction.OUTBOUND

    def test_image_attachment(self) -> None:
        attachments = [{"type": "image", "payload": {"url": "https://cdn.fb.example/1.jpg"}}]

        message = MessengerNormalizer().normalize(
            _raw(messenger_payload(text=None, attachments=attachments))
        )

        assert message.content_type == ContentType.IMAGE
        assert message.attachments[0].url == "https://cdn.fb.example/1.jpg"
        assert message.body is None

    def test_location_attachment_becomes_body(self) -> None:
        attachments = [{"type": "location", "payload": {"coordinates": {"lat": 1.5, "long": 2.5}}}]

        message = MessengerNormalizer().normalize(
            _raw(messenger_payload(text=None, attachments=attachments))
        )

        assert message.content_type == ContentType.LOCATION
        assert message.body == "Location: 1.5, 2.5"

    def test_postback_uses_title(self) -> None:
        payload = messenger_payload(
            postback={"mid": "m_pb1", "title": "Get Started", "payload": "GET_STARTED"}
        )

        message = MessengerNormalizer().normalize(_raw(payload, message_id="m_pb1"))

        assert message.body == "Get Started"
        assert message.provider_meta["postback_payload"] == "GET_STARTED"

    def test_reply_salts_thread_key(self) -> None:
        message = MessengerNormalizer().normalize(_raw(messenger_payload(reply_to="m_prev")))

        assert message.thread_key.endswith(":reply:m_prev")

    def test_postback_without_mid_is_invalid(self) -> None:
        payload = messenger_payload(postback={"title": "Get Started"})

        with pytest.raises(NormalizationError):
            MessengerNormalizer().normalize(_raw(payload, message_id=""))

    def test_rejects_other_channels(self) -> None:
        with pytest.raises(ValueError):
            MessengerNormalizer(Channel.SMS)
