"""Extrator de corpo e anexos de mensagens Gmail.

Corpo, em ordem de preferência: text/plain, text/html sem tags, snippet.
Partes multipart são percorridas em profundidade.
"""

from __future__ import annotations

import base64
import binascii
import html
import re
from typing import TYPE_CHECKING

from api.normalizers._common import content_type_from_mime
from app.protocols.models import Attachment

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .schemas import GmailMessage, GmailPart

_TAG = re.compile(r"<[^>]*>")
_BLOCK_BREAK = re.compile(r"<(br|/p|/div|/li|/tr)[^>]*>", re.IGNORECASE)
_SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_WHITESPACE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\n\s*\n+")


def iter_parts(part: GmailPart) -> Iterator[GmailPart]:
    """Percorre a árvore MIME (pré-ordem)."""
    yield part
    for child in part.parts:
        yield from iter_parts(child)


def decode_base64url(data: str) -> str | None:
    """Decodifica base64url (com ou sem padding); None se inválido."""
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return None


def html_to_text(markup: str) -> str:
    """Remove tags e entidades HTML preservando quebras de bloco."""
    text = _SCRIPT_STYLE.sub("", markup)
    text = _BLOCK_BREAK.sub("\n", text)
    text = html.unescape(_TAG.sub("", text))
    text = _WHITESPACE.sub(" ", text)
    return _BLANK_LINES.sub("\n\n", text).strip()


def _first_body(message: GmailMessage, mime_type: str) -> str | None:
    for part in iter_parts(message.payload):
        if part.mime_type.lower() != mime_type or part.filename or not part.body.data:
            continue
        decoded = decode_base64url(part.body.data)
        if decoded and decoded.strip():
            return decoded
    return None


def extract_body(message: GmailMessage) -> str | None:
    """Corpo textual com degradação para HTML e snippet."""
    plain = _first_body(message, "text/plain")
    if plain is not None:
        return plain.strip()
    markup = _first_body(message, "text/html")
    if markup is not None:
        return html_to_text(markup) or message.snippet
    return message.snippet


def extract_attachments(message: GmailMessage) -> list[Attachment]:
    """Partes com filename e attachmentId; URL depende de download via API."""
    attachments: list[Attachment] = []
    for part in iter_parts(message.payload):
        if not part.filename or not part.body.attachment_id:
            continue
        attachments.append(
            Attachment(
                type=content_type_from_mime(part.mime_type),
                filename=part.filename,
                mime_type=part.mime_type,
                media_id=part.body.attachment_id,
                size_bytes=part.body.size,
            )
        )
    return attachments
