"""Builders de mensagens e payloads usados nos testes de ingestão."""

from __future__ import annotations

import asyncio
import base64
import json
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import urlencode

from app.constants.ingestion import Channel, ContactType, ContentType, Direction
from app.domain.contacts import build_contact
from app.domain.fingerprint import compute_message_hash
from app.domain.thread_key import generate_thread_key
from app.infra.stores import MemoryIngestionRepository
from app.protocols.dedupe import IdempotencyStoreProtocol
from app.protocols.models import (
    Attachment,
    Contact,
    MessageRecord,
    NormalizedMessage,
    RawProviderMessage,
    StoredMessage,
)
from utils.errors import PersistenceError, RedisConnectionError

FIXED_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)

CUSTOMER_PHONE = "+12345678901"
BUSINESS_PHONE = "+15550001111"


class FakeClock:
    """Relógio controlável para serviços com `now` injetado."""

    def __init__(self, start: datetime = FIXED_NOW) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class FlakyRepository(MemoryIngestionRepository):
    """Repositório cuja escrita de mensagem falha nas primeiras N chamadas."""

    def __init__(self, failures: int = 1, *, delay_seconds: float = 0.0) -> None:
        super().__init__()
        self.failures = failures
        self.delay_seconds = delay_seconds
        self.write_attempts = 0

    async def create_message(self, record: MessageRecord) -> tuple[StoredMessage, bool]:
        self.write_attempts += 1
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.write_attempts <= self.failures:
            raise PersistenceError("database unavailable")
        return await super().create_message(record)


class SlowLookupRepository(MemoryIngestionRepository):
    """Leitura por provider_id lenta: abre a janela entre cópias concorrentes."""

    def __init__(self, delay_seconds: float = 0.05) -> None:
        super().__init__()
        self.delay_seconds = delay_seconds

    async def find_message_by_provider_id(
        self,
        provider_id: str,
        provider_message_id: str,
    ) -> StoredMessage | None:
        await asyncio.sleep(self.delay_seconds)
        return await super().find_message_by_provider_id(provider_id, provider_message_id)


class UnavailableIdempotencyStore(IdempotencyStoreProtocol):
    """Store de idempotência fora do ar (Redis indisponível)."""

    async def get_message_id(self, key: str) -> str | None:
        raise RedisConnectionError("Falha ao consultar idempotência no Redis")

    async def try_reserve(self, key: str, ttl: int) -> bool:
        raise RedisConnectionError("Falha ao reservar chave no Redis")

    async def mark_processed(self, key: str, message_id: str, ttl: int) -> None:
        raise RedisConnectionError("Falha ao concluir idempotência no Redis")

    async def release(self, key: str) -> None:
        raise RedisConnectionError("Falha ao liberar reserva no Redis")

    async def clear_expired(self) -> int:
        return 0


def make_contact(
    value: str,
    contact_type: ContactType = ContactType.PHONE,
    provider: str = "twilio",
) -> Contact:
    return build_contact(value, contact_type, provider)


def make_message(
    *,
    provider_message_id: str = "SM100",
    provider_id: str = "twilio-acct",
    channel: Channel = Channel.SMS,
    direction: Direction = Direction.INBOUND,
    from_value: str = CUSTOMER_PHONE,
    to_value: str = BUSINESS_PHONE,
    contact_type: ContactType = ContactType.PHONE,
    body: str | None = "Hello, I need help with my order",
    content_type: ContentType = ContentType.TEXT,
    timestamp: datetime = FIXED_NOW,
    attachments: tuple[Attachment, ...] = (),
    provider_meta: dict[str, Any] | None = None,
    thread_key: str | None = None,
) -> NormalizedMessage:
    """NormalizedMessage consistente (hash e thread key calculados)."""
    from_contact = make_contact(from_value, contact_type)
    to_contact = make_contact(to_value, contact_type)
    return NormalizedMessage(
        provider_message_id=provider_message_id,
        provider_id=provider_id,
        channel=channel,
        direction=direction,
        from_contact=from_contact,
        to_contact=to_contact,
        timestamp=timestamp,
        body=body,
        content_type=content_type,
        thread_key=thread_key
        or generate_thread_key(
            str(channel), from_contact.normalized_value, to_contact.normalized_value
        ),
        message_hash=compute_message_hash(
            str(channel),
            from_contact.normalized_value,
            to_contact.normalized_value,
            body,
            str(content_type),
        ),
        provider_meta=provider_meta or {},
        attachments=attachments,
    )


def make_raw(
    payload: bytes | str | dict[str, Any],
    *,
    provider_type: str = "twilio_sms",
    provider_message_id: str = "SM100",
    provider_id: str = "twilio-acct",
    channel: Channel | str = Channel.SMS,
    received_at: datetime = FIXED_NOW,
) -> RawProviderMessage:
    return RawProviderMessage(
        provider_id=provider_id,
        provider_message_id=provider_message_id,
        provider_type=provider_type,
        channel=channel,
        payload=payload,
        received_at=received_at,
    )


# ──────────────────────────────────────────────────────────────
# Payloads por provedor
# ──────────────────────────────────────────────────────────────


def twilio_form(
    *,
    sid: str = "SM100",
    from_number: str = "+12345678901",
    to_number: str = "+15550001111",
    body: str = "Hello, I need help with my order",
    **extra: str,
) -> dict[str, str]:
    form = {
        "MessageSid": sid,
        "AccountSid": "AC123",
        "From": from_number,
        "To": to_number,
        "Body": body,
        "NumMedia": "0",
        "SmsStatus": "received",
    }
    form.update(extra)
    return form


def twilio_body(**kwargs: Any) -> bytes:
    return urlencode(twilio_form(**kwargs)).encode("utf-8")


def whatsapp_payload(
    *,
    message_id: str = "wamid.HBgM001",
    from_number: str = "12345678901",
    body: str = "Olá, preciso de ajuda",
    timestamp: str = "1773144000",
    message: dict[str, Any] | None = None,
    statuses: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    value: dict[str, Any] = {
        "messaging_product": "whatsapp",
        "metadata": {"display_phone_number": "15550001111", "phone_number_id": "PNID1"},
        "contacts": [{"wa_id": from_number, "profile": {"name": "Maria Silva"}}],
    }
    if statuses is not None:
        value["statuses"] = statuses
    else:
        value["messages"] = [
            message
            or {
                "id": message_id,
                "from": from_number,
                "timestamp": timestamp,
                "type": "text",
                "text": {"body": body},
            }
        ]
    return {
        "object": "whatsapp_business_account",
        "entry": [{"id": "WABA1", "changes": [{"field": "messages", "value": value}]}],
    }


def whatsapp_body(**kwargs: Any) -> bytes:
    return json.dumps(whatsapp_payload(**kwargs)).encode("utf-8")


def gmail_message(
    *,
    message_id: str = "18c2f0a1b2c3d4e5",
    thread_id: str = "18c2f0a1b2c3d4e5",
    sender: str = "Sarah Johnson <sarah.johnson@example.com>",
    recipient: str = "support@acme.com",
    subject: str = "Order #1234",
    text: str = "Hi, where is my order?",
    label_ids: list[str] | None = None,
    internal_date: str = "1773144000000",
    parts: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    encoded = base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")
    return {
        "id": message_id,
        "threadId": thread_id,
        "labelIds": label_ids if label_ids is not None else ["INBOX"],
        "snippet": text[:40],
        "internalDate": internal_date,
        "historyId": "9876",
        "payload": {
            "mimeType": "multipart/mixed",
            "headers": [
                {"name": "From", "value": sender},
                {"name": "To", "value": recipient},
                {"name": "Subject", "value": subject},
                {"name": "Message-ID", "value": "<abc@mail.example.com>"},
            ],
            "parts": parts
            if parts is not None
            else [{"partId": "0", "mimeType": "text/plain", "body": {"data": encoded}}],
        },
    }


def messenger_payload(
    *,
    mid: str = "m_abc123",
    sender_id: str = "PSID_1001",
    recipient_id: str = "PAGE_2002",
    text: str | None = "Do you ship to Canada?",
    is_echo: bool = False,
    attachments: list[dict[str, Any]] | None = None,
    reply_to: str | None = None,
    postback: dict[str, Any] | None = None,
) -> dict[str, Any]:
    event: dict[str, Any] = {
        "sender": {"id": sender_id},
        "recipient": {"id": recipient_id},
        "timestamp": 1773144000000,
    }
    if postback is not None:
        event["postback"] = postback
    else:
        message: dict[str, Any] = {"mid": mid, "is_echo": is_echo}
        if text is not None:
            message["text"] = text
        if attachments:
            message["attachments"] = attachments
        if reply_to:
            message["reply_to"] = {"mid": reply_to}
        event["message"] = message
    return {"object": "page", "entry": [{"id": "PAGE_2002", "time": 1, "messaging": [event]}]}
