"""Identificação do evento inbound e montagem do RawProviderMessage."""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime
from typing import Any

from app.constants.ingestion import Channel
from app.protocols.models import RawProviderMessage

# provider_type -> canal
PROVIDER_CHANNELS: dict[str, Channel] = {
    "twilio_sms": Channel.SMS,
    "whatsapp": Channel.WHATSAPP,
    "gmail": Channel.EMAIL,
    "facebook": Channel.FACEBOOK,
    "instagram": Channel.INSTAGRAM,
}


def _first(items: Any) -> dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def _whatsapp_event_id(payload: dict[str, Any]) -> str | None:
    for entry in payload.get("entry") or []:
        for change in entry.get("changes") or []:
            value = change.get("value") or {}
            for key in ("messages", "statuses"):
                event_id = _first(value.get(key)).get("id")
                if event_id:
                    return str(event_id)
    return None


def _messenger_event_id(payload: dict[str, Any]) -> str | None:
    for entry in payload.get("entry") or []:
        for event in entry.get("messaging") or []:
            for key in ("message", "postback"):
                block = event.get(key) or {}
                if isinstance(block, dict) and block.get("mid"):
                    return str(block["mid"])
    return None


def extract_provider_message_id(provider_type: str, payload: dict[str, Any]) -> str | None:
    """ID nativo do evento conforme o formato do provedor."""
    provider = provider_type.lower()
    if provider == "twilio_sms":
        return payload.get("MessageSid") or payload.get("SmsSid")
    if provider == "whatsapp":
        return _whatsapp_event_id(payload)
    if provider == "gmail":
        return payload.get("id")
    if provider in ("facebook", "instagram"):
        return _messenger_event_id(payload)
    return payload.get("id") or payload.get("message_id")


def compute_inbound_event_id(provider_type: str, payload: dict[str, Any], raw_body: bytes) -> str:
    """ID nativo do evento ou, na ausência, hash estável do payload."""
    event_id = extract_provider_message_id(provider_type, payload)
    if event_id:
        return str(event_id)
    digest = hashlib.sha256(
        raw_body or json.dumps(payload, sort_keys=True).encode("utf-8")
    ).hexdigest()
    return f"payload:{digest}"


def build_raw_message(
    provider_id: str,
    provider_type: str,
    payload: dict[str, Any],
    raw_body: bytes,
    *,
    received_at: datetime | None = None,
) -> RawProviderMessage:
    """Monta o RawProviderMessage a partir do webhook já verificado."""
    provider = provider_type.lower()
    return RawProviderMessage(
        provider_id=provider_id,
        provider_message_id=compute_inbound_event_id(provider, payload, raw_body),
        provider_type=provider,
        channel=PROVIDER_CHANNELS.get(provider, provider),
        payload=payload,
        received_at=received_at or datetime.now(UTC),
    )
