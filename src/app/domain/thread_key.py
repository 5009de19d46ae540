"""Derivação determinística de thread keys.

A chave de uma conversa entre duas partes é simétrica: ordenar os
identificadores garante que mensagens nos dois sentidos caiam na mesma
thread. Um identificador nativo do provedor (threadId do Gmail, por
exemplo) sempre tem prioridade.
"""

from __future__ import annotations

import hashlib
import re

_REPLY_PREFIX = re.compile(r"^\s*(re|fwd?)\s*:\s*", re.IGNORECASE)


def generate_thread_key(
    channel: str,
    party_a: str,
    party_b: str,
    native_context: str | None = None,
) -> str:
    """Gera thread key para um canal de duas partes.

    Args:
        channel: Canal (sms, whatsapp, email...)
        party_a: Identificador normalizado de uma das partes
        party_b: Identificador normalizado da outra parte
        native_context: ID nativo de thread/conversa, quando existir

    Returns:
        "{channel}:{native_context}" ou "{channel}:{menor}:{maior}"
    """
    if native_context:
        return f"{channel}:{native_context}"
    low, high = sorted((party_a, party_b))
    return f"{channel}:{low}:{high}"


def normalize_subject(subject: str) -> str:
    """Remove prefixos Re:/Fw:/Fwd: (repetidos) e normaliza caixa."""
    normalized = subject.strip()
    while True:
        stripped = _REPLY_PREFIX.sub("", normalized, count=1)
        if stripped == normalized:
            break
        normalized = stripped
    return normalized.strip().lower()


def subject_hash(subject: str) -> str:
    return hashlib.sha256(normalize_subject(subject).encode("utf-8")).hexdigest()[:8]


def generate_contextual_thread_key(
    base_key: str,
    *,
    subject: str | None = None,
    reply_to_message_id: str | None = None,
    conversation_id: str | None = None,
) -> str:
    """Acrescenta sufixos de contexto na ordem :subj, :reply, :conv."""
    key = base_key
    if subject:
        key = f"{key}:subj:{subject_hash(subject)}"
    if reply_to_message_id:
        key = f"{key}:reply:{reply_to_message_id}"
    if conversation_id:
        key = f"{key}:conv:{conversation_id}"
    return key
