"""Helpers de extração de campos por tipo de mensagem WhatsApp.

Separado de extractor.py para manter SRP. Cada função lê o bloco do seu
tipo e degrada para None quando o bloco está ausente ou incompleto.
"""

from __future__ import annotations

from typing import Any

from app.constants.ingestion import ContentType
from app.protocols.models import Attachment

MEDIA_TYPES: dict[str, ContentType] = {
    "image": ContentType.IMAGE,
    "sticker": ContentType.IMAGE,
    "video": ContentType.VIDEO,
    "audio": ContentType.AUDIO,
    "document": ContentType.DOCUMENT,
}


def extract_text_body(block: dict[str, Any]) -> str | None:
    """Corpo de mensagem de texto."""
    return block.get("body")


def extract_media_attachment(block: dict[str, Any], media_type: str) -> Attachment | None:
    """Anexo de mídia; a URL só é conhecida após resolver o media_id."""
    media_id = block.get("id")
    if not media_id:
        return None
    return Attachment(
        type=MEDIA_TYPES[media_type],
        url=block.get("url") or "",
        filename=block.get("filename"),
        mime_type=block.get("mime_type"),
        media_id=str(media_id),
    )


def format_location(block: dict[str, Any]) -> str | None:
    """Resumo textual de localização: "Location: lat, lng (nome)"."""
    latitude = block.get("latitude")
    longitude = block.get("longitude")
    if latitude is None or longitude is None:
        return None
    label = f"Location: {latitude}, {longitude}"
    name = block.get("name") or block.get("address")
    return f"{label} ({name})" if name else label


def extract_interactive_reply(block: dict[str, Any]) -> str | None:
    """Título da resposta de botão/lista."""
    for reply_key in ("button_reply", "list_reply"):
        reply = block.get(reply_key)
        if isinstance(reply, dict):
            return reply.get("title") or reply.get("id")
    return None


def extract_button_text(block: dict[str, Any]) -> str | None:
    """Texto de quick-reply de template."""
    return block.get("text") or block.get("payload")


def extract_reaction(block: dict[str, Any]) -> tuple[str | None, str | None]:
    """(message_id reagido, emoji)."""
    return block.get("message_id"), block.get("emoji")


def summarize_contacts(contacts: list[dict[str, Any]]) -> str | None:
    """Nomes dos cartões de contato compartilhados."""
    names = [
        contact.get("name", {}).get("formatted_name")
        for contact in contacts
        if isinstance(contact.get("name"), dict)
    ]
    names = [name for name in names if name]
    if not names:
        return None
    return "Contacts: " + ", ".join(names)
