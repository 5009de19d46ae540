"""Extrator de payloads WhatsApp Cloud API.

Responsabilidades:
- Localizar a mensagem (ou status) referente ao evento no envelope
- Extrair corpo, anexos e contexto por tipo de mensagem

Não faz validação de negócio - apenas extração estrutural.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.constants.ingestion import ContentType

from ._extraction_helpers import (
    MEDIA_TYPES,
    extract_button_text,
    extract_interactive_reply,
    extract_media_attachment,
    extract_reaction,
    extract_text_body,
    format_location,
    summarize_contacts,
)

if TYPE_CHECKING:
    from app.protocols.models import Attachment

    from .schemas import ChangeValue, MessageStatus, WhatsAppMessage, WhatsAppWebhookPayload

logger = logging.getLogger(__name__)

SUPPORTED_MESSAGE_TYPES = frozenset(
    {
        "text", "image", "video", "audio", "document", "sticker",
        "location", "contacts", "interactive", "button", "reaction",
    }
)


@dataclass(frozen=True, slots=True)
class ExtractedEvent:
    """Evento localizado no envelope: mensagem recebida ou status."""

    value: ChangeValue
    message: WhatsAppMessage | None = None
    status: MessageStatus | None = None


@dataclass(frozen=True, slots=True)
class ExtractedContent:
    body: str | None
    content_type: ContentType
    attachments: tuple[Attachment, ...] = ()
    reaction_to: str | None = None


def select_event(payload: WhatsAppWebhookPayload, wanted_id: str | None) -> ExtractedEvent | None:
    """Seleciona o evento com ID `wanted_id`, ou o primeiro disponível.

    Mensagens têm prioridade sobre status quando nenhum ID é pedido.
    """
    first_message: ExtractedEvent | None = None
    first_status: ExtractedEvent | None = None
    for entry in payload.entry:
        for change in entry.changes:
            value = change.value
            for message in value.messages:
                if wanted_id and message.id == wanted_id:
                    return ExtractedEvent(value=value, message=message)
                if first_message is None:
                    first_message = ExtractedEvent(value=value, message=message)
            for status in value.statuses:
                if wanted_id and status.id == wanted_id:
                    return ExtractedEvent(value=value, status=status)
                if first_status is None:
                    first_status = ExtractedEvent(value=value, status=status)
    return first_message or first_status


def extract_content(message: WhatsAppMessage) -> ExtractedContent:
    """Extrai corpo, tipo de conteúdo e anexos conforme o tipo."""
    message_type = message.type

    if message_type in MEDIA_TYPES:
        block = message.block(message_type)
        attachment = extract_media_attachment(block, message_type)
        return ExtractedContent(
            body=block.get("caption"),
            content_type=MEDIA_TYPES[message_type],
            attachments=(attachment,) if attachment else (),
        )
    if message_type == "location":
        return ExtractedContent(
            body=format_location(message.block("location")),
            content_type=ContentType.LOCATION,
        )
    if message_type == "reaction":
        reacted_id, emoji = extract_reaction(message.block("reaction"))
        return ExtractedContent(body=emoji, content_type=ContentType.TEXT, reaction_to=reacted_id)

    body = _extract_text_like(message)
    if message_type not in SUPPORTED_MESSAGE_TYPES:
        logger.info("unsupported_message_type_received", extra={"message_type": message_type})
    return ExtractedContent(body=body, content_type=ContentType.TEXT)


def _extract_text_like(message: WhatsAppMessage) -> str | None:
    if message.type == "text":
        return extract_text_body(message.block("text"))
    if message.type == "interactive":
        return extract_interactive_reply(message.block("interactive"))
    if message.type == "button":
        return extract_button_text(message.block("button"))
    if message.type == "contacts":
        return summarize_contacts(message.contacts or [])
    return None
