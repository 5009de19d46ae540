"""Schemas do webhook WhatsApp Cloud API (entry -> changes -> value)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MessageContext(_Lenient):
    id: str | None = None
    from_number: str | None = Field(default=None, alias="from")


class WhatsAppMessage(_Lenient):
    """Mensagem recebida. Blocos por tipo ficam como dict cru."""

    id: str = Field(min_length=1)
    from_number: str = Field(alias="from", min_length=1)
    timestamp: str | int | None = None
    type: str = "text"
    context: MessageContext | None = None
    text: dict[str, Any] | None = None
    image: dict[str, Any] | None = None
    video: dict[str, Any] | None = None
    audio: dict[str, Any] | None = None
    document: dict[str, Any] | None = None
    sticker: dict[str, Any] | None = None
    location: dict[str, Any] | None = None
    contacts: list[dict[str, Any]] | None = None
    interactive: dict[str, Any] | None = None
    button: dict[str, Any] | None = None
    reaction: dict[str, Any] | None = None

    def block(self, name: str) -> dict[str, Any]:
        value = getattr(self, name, None)
        return value if isinstance(value, dict) else {}


class MessageStatus(_Lenient):
    """Status de entrega de mensagem enviada pelo negócio."""

    id: str = Field(min_length=1)
    status: str
    timestamp: str | int | None = None
    recipient_id: str = Field(min_length=1)
    conversation: dict[str, Any] | None = None


class ProfileContact(_Lenient):
    wa_id: str | None = None
    profile: dict[str, Any] = Field(default_factory=dict)


class Metadata(_Lenient):
    display_phone_number: str = Field(min_length=1)
    phone_number_id: str | None = None


class ChangeValue(_Lenient):
    messaging_product: str = "whatsapp"
    metadata: Metadata
    contacts: list[ProfileContact] = Field(default_factory=list)
    messages: list[WhatsAppMessage] = Field(default_factory=list)
    statuses: list[MessageStatus] = Field(default_factory=list)


class Change(_Lenient):
    field: str | None = None
    value: ChangeValue


class Entry(_Lenient):
    id: str | None = None
    changes: list[Change] = Field(min_length=1)


class WhatsAppWebhookPayload(_Lenient):
    object: str | None = None
    entry: list[Entry] = Field(min_length=1)
