"""Normalizer WhatsApp — envelope Cloud API -> NormalizedMessage.

Mensagens recebidas são inbound (cliente -> número do negócio). Status
de entrega (sent/delivered/read/failed) viram eco outbound da mensagem
original, com o mesmo wamid.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from api.normalizers._common import (
    build_normalized_message,
    clean_body,
    decode_json_payload,
    parse_event_timestamp,
    validate_model,
)
from app.constants.ingestion import Channel, ContactType, ContentType, Direction
from app.domain.contacts import DEFAULT_COUNTRY_CODE, build_contact
from app.protocols.normalizer import NormalizationError

from .extractor import extract_content, select_event
from .schemas import WhatsAppWebhookPayload

if TYPE_CHECKING:
    from app.protocols.models import Contact, NormalizedMessage, RawProviderMessage

    from .schemas import ChangeValue, MessageStatus, WhatsAppMessage

PROVIDER = "whatsapp"


class WhatsAppNormalizer:
    """Normalizer do provider_type whatsapp."""

    provider_type = "whatsapp"

    def __init__(self, *, default_country_code: str = DEFAULT_COUNTRY_CODE) -> None:
        self._country_code = default_country_code

    def normalize(self, raw: RawProviderMessage) -> NormalizedMessage:
        payload = validate_model(
            WhatsAppWebhookPayload, decode_json_payload(raw.payload), "whatsapp"
        )
        event = select_event(payload, raw.provider_message_id or None)
        if event is not None and event.message is not None:
            return self._normalize_message(raw, event.value, event.message)
        if event is not None and event.status is not None:
            return self._normalize_status(raw, event.value, event.status)
        raise NormalizationError("Payload whatsapp sem mensagens ou status")

    def _phone(self, value: str) -> Contact:
        return build_contact(
            value, ContactType.PHONE, PROVIDER, default_country_code=self._country_code
        )

    def _normalize_message(
        self,
        raw: RawProviderMessage,
        value: ChangeValue,
        message: WhatsAppMessage,
    ) -> NormalizedMessage:
        content = extract_content(message)
        reply_to = message.context.id if message.context else None
        profile_name = next(
            (
                contact.profile.get("name")
                for contact in value.contacts
                if contact.wa_id in (None, message.from_number)
            ),
            None,
        )
        return build_normalized_message(
            raw,
            provider_message_id=message.id,
            channel=Channel.WHATSAPP,
            direction=Direction.INBOUND,
            from_contact=self._phone(message.from_number),
            to_contact=self._phone(value.metadata.display_phone_number),
            timestamp=parse_event_timestamp(message.timestamp),
            body=clean_body(content.body),
            content_type=content.content_type,
            attachments=content.attachments,
            reply_to_message_id=reply_to,
            provider_meta={
                "event": "message",
                "whatsapp_type": message.type,
                "phone_number_id": value.metadata.phone_number_id,
                "profile_name": profile_name,
                "context_message_id": reply_to,
                "reaction_to": content.reaction_to,
            },
        )

    def _normalize_status(
        self,
        raw: RawProviderMessage,
        value: ChangeValue,
        status: MessageStatus,
    ) -> NormalizedMessage:
        conversation_id = (status.conversation or {}).get("id")
        return build_normalized_message(
            raw,
            provider_message_id=status.id,
            channel=Channel.WHATSAPP,
            direction=Direction.OUTBOUND,
            from_contact=self._phone(value.metadata.display_phone_number),
            to_contact=self._phone(status.recipient_id),
            timestamp=parse_event_timestamp(status.timestamp),
            body=None,
            content_type=ContentType.TEXT,
            provider_meta={
                "event": "status",
                "status": status.status,
                "phone_number_id": value.metadata.phone_number_id,
                "whatsapp_conversation_id": conversation_id,
            },
        )
