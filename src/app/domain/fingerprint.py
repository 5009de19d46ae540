"""Fingerprints determinísticos de conteúdo.

Hashes usados por dedupe (message_hash) e idempotência. Todas as funções
são puras: conteúdo igual gera hash igual, sempre.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from app.protocols.models import NormalizedMessage

_WHITESPACE = re.compile(r"\s+")


def _sha256(parts: list[str]) -> str:
    # JSON evita ambiguidade de separador quando o corpo contém "|"
    canonical = json.dumps(parts, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def compute_message_hash(
    channel: str,
    from_value: str,
    to_value: str,
    body: str | None,
    content_type: str,
) -> str:
    """Hash da tupla canônica {channel, from, to, body, content_type}."""
    return _sha256([str(channel), from_value, to_value, body or "", str(content_type)])


def compute_content_fingerprint(message: NormalizedMessage) -> str:
    """Fingerprint do conteúdo incluindo a identidade dos anexos.

    Eventos sem corpo e sem anexos (status de entrega, por exemplo) não
    têm conteúdo próprio; nesses o ID do provedor entra no fingerprint.
    """
    parts = [
        f"{attachment.type}:{attachment.media_id or attachment.url}:{attachment.filename or ''}"
        for attachment in message.attachments
    ]
    if not message.body and not parts:
        parts = [f"event:{message.provider_message_id}"]
    return _sha256([message.message_hash, *parts])


def compute_idempotency_key(
    provider_id: str,
    provider_message_id: str,
    timestamp: datetime | None,
) -> str:
    """Chave estável para o mesmo evento do provedor.

    timestamp=None quando o provedor não informa o horário do evento; a
    chave fica só com (provider_id, provider_message_id).
    """
    material = f"{provider_id}|{provider_message_id}"
    if timestamp is not None:
        material = f"{material}|{timestamp.isoformat()}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def normalize_body_for_comparison(body: str | None) -> str:
    """Minúsculas e espaços colapsados, para comparação de similaridade."""
    if not body:
        return ""
    return _WHITESPACE.sub(" ", body.strip().lower())
