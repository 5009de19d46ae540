"""Normalizer Email (Gmail API) — recurso de mensagem -> NormalizedMessage."""

from __future__ import annotations

from email.utils import getaddresses
from typing import TYPE_CHECKING

from api.normalizers._common import (
    build_normalized_message,
    clean_body,
    decode_json_payload,
    parse_event_timestamp,
    primary_content_type,
    validate_model,
)
from app.constants.ingestion import Channel, ContactType, Direction
from app.domain.contacts import build_contact
from app.protocols.normalizer import NormalizationError

from .extractor import extract_attachments, extract_body
from .schemas import GmailMessage

if TYPE_CHECKING:
    from collections.abc import Iterable

    from app.protocols.models import Contact, NormalizedMessage, RawProviderMessage

PROVIDER = "gmail"
SENT_LABEL = "SENT"


def _first_address(header_value: str | None) -> str | None:
    """Primeiro endereço do header, preservando "Nome <addr>"."""
    if not header_value:
        return None
    for name, address in getaddresses([header_value]):
        if address:
            return f"{name} <{address}>" if name else address
    return None


class GmailNormalizer:
    """Normalizer do provider_type gmail.

    Args:
        business_domains: Domínios do negócio; remetente nesses domínios
            indica mensagem outbound
    """

    provider_type = "gmail"

    def __init__(self, *, business_domains: Iterable[str] = ()) -> None:
        self._business_domains = frozenset(domain.lower().lstrip("@") for domain in business_domains)

    def normalize(self, raw: RawProviderMessage) -> NormalizedMessage:
        message = validate_model(GmailMessage, decode_json_payload(raw.payload), "gmail")

        sender = _first_address(message.header("From"))
        recipient = _first_address(message.header("To")) or _first_address(
            message.header("Delivered-To")
        )
        if not sender or not recipient:
            raise NormalizationError("Payload gmail sem headers From/To")

        from_contact = build_contact(sender, ContactType.EMAIL, PROVIDER)
        to_contact = build_contact(recipient, ContactType.EMAIL, PROVIDER)
        subject = message.header("Subject")
        attachments = extract_attachments(message)

        return build_normalized_message(
            raw,
            provider_message_id=message.id,
            channel=Channel.EMAIL,
            direction=self._direction(message, from_contact),
            from_contact=from_contact,
            to_contact=to_contact,
            timestamp=parse_event_timestamp(message.internal_date or message.header("Date")),
            body=clean_body(extract_body(message)),
            content_type=primary_content_type(attachments),
            attachments=attachments,
            native_thread_id=message.thread_id,
            subject=subject,
            provider_meta={
                "subject": subject,
                "snippet": message.snippet,
                "label_ids": tuple(message.label_ids),
                "history_id": message.history_id,
                "rfc822_message_id": message.header("Message-ID"),
                "in_reply_to": message.header("In-Reply-To"),
            },
        )

    def _direction(self, message: GmailMessage, sender: Contact) -> Direction:
        if SENT_LABEL in message.label_ids:
            return Direction.OUTBOUND
        domain = sender.normalized_value.rsplit("@", 1)[-1]
        if domain in self._business_domains:
            return Direction.OUTBOUND
        return Direction.INBOUND
