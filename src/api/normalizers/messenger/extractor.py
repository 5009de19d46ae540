"""Extrator de eventos Messenger (entry[].messaging[]).

Eventos suportados: message (texto, anexos, echo) e postback.
Eventos de delivery/read não carregam conteúdo e são ignorados.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.constants.ingestion import ContentType
from app.protocols.models import Attachment

if TYPE_CHECKING:
    from .schemas import MessagingEvent, MessengerAttachment, MessengerWebhookPayload

ATTACHMENT_TYPES: dict[str, ContentType] = {
    "image": ContentType.IMAGE,
    "video": ContentType.VIDEO,
    "audio": ContentType.AUDIO,
    "file": ContentType.DOCUMENT,
    "location": ContentType.LOCATION,
}


def event_message_id(event: MessagingEvent) -> str | None:
    if event.message is not None:
        return event.message.mid
    if event.postback is not None:
        return event.postback.mid
    return None


def select_event(payload: MessengerWebhookPayload, wanted_id: str | None) -> MessagingEvent | None:
    """Evento com mid `wanted_id`, ou o primeiro com conteúdo."""
    first: MessagingEvent | None = None
    for entry in payload.entry:
        for event in entry.messaging:
            if event.message is None and event.postback is None:
                continue
            if wanted_id and event_message_id(event) == wanted_id:
                return event
            if first is None:
                first = event
    return first


def convert_attachment(attachment: MessengerAttachment) -> Attachment:
    content_type = ATTACHMENT_TYPES.get(attachment.type, ContentType.DOCUMENT)
    return Attachment(
        type=content_type,
        url=str(attachment.payload.get("url") or ""),
        filename=attachment.payload.get("title"),
    )


def location_body(attachment: MessengerAttachment) -> str | None:
    coordinates = attachment.payload.get("coordinates") or {}
    latitude = coordinates.get("lat")
    longitude = coordinates.get("long")
    if latitude is None or longitude is None:
        return None
    return f"Location: {latitude}, {longitude}"
