"""Normalizer Messenger — Facebook/Instagram -> NormalizedMessage.

O mesmo envelope serve aos dois canais; o canal vem da configuração do
normalizer. Echo (mensagem enviada pela página) é outbound.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from api.normalizers._common import (
    build_normalized_message,
    clean_body,
    decode_json_payload,
    parse_event_timestamp,
    primary_content_type,
    validate_model,
)
from app.constants.ingestion import Channel, ContactType, ContentType, Direction
from app.domain.contacts import build_contact
from app.protocols.normalizer import NormalizationError

from .extractor import convert_attachment, event_message_id, location_body, select_event
from .schemas import MessengerWebhookPayload

if TYPE_CHECKING:
    from app.protocols.models import NormalizedMessage, RawProviderMessage


class MessengerNormalizer:
    """Normalizer dos provider_types facebook e instagram."""

    def __init__(self, channel: Channel = Channel.FACEBOOK) -> None:
        if channel not in (Channel.FACEBOOK, Channel.INSTAGRAM):
            raise ValueError(f"Canal não suportado pelo Messenger: {channel}")
        self._channel = channel
        self.provider_type = str(channel)

    def normalize(self, raw: RawProviderMessage) -> NormalizedMessage:
        payload = validate_model(
            MessengerWebhookPayload, decode_json_payload(raw.payload), self.provider_type
        )
        event = select_event(payload, raw.provider_message_id or None)
        message_id = event_message_id(event) if event else None
        if event is None or not message_id:
            raise NormalizationError(f"Payload {self.provider_type} sem mensagem")

        provider = self.provider_type
        from_contact = build_contact(event.sender.id, ContactType.SOCIAL, provider)
        to_contact = build_contact(event.recipient.id, ContactType.SOCIAL, provider)

        message = event.message
        attachments = [convert_attachment(item) for item in message.attachments] if message else []
        if message is not None:
            body = message.text
            if body is None and attachments and attachments[0].type == ContentType.LOCATION:
                body = location_body(message.attachments[0])
        else:
            body = event.postback.title if event.postback else None

        is_echo = bool(message and message.is_echo)
        reply_to = message.reply_to.mid if message and message.reply_to else None
        return build_normalized_message(
            raw,
            provider_message_id=message_id,
            channel=self._channel,
            direction=Direction.OUTBOUND if is_echo else Direction.INBOUND,
            from_contact=from_contact,
            to_contact=to_contact,
            timestamp=parse_event_timestamp(event.timestamp),
            body=clean_body(body),
            content_type=primary_content_type(attachments),
            attachments=attachments,
            reply_to_message_id=reply_to,
            provider_meta={
                "event": "message" if message is not None else "postback",
                "is_echo": is_echo,
                "reply_to": reply_to,
                "postback_payload": event.postback.payload if event.postback else None,
                "quick_reply_payload": (message.quick_reply or {}).get("payload")
                if message
                else None,
            },
        )
