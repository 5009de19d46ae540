"""Gerenciamento de correlation_id para rastreamento de mensagens.

O correlation_id acompanha uma mensagem por todos os estágios do pipeline
e é injetado nos logs. Usa ContextVar para ser thread/async-safe: cada
task de process_message_batch enxerga apenas o seu.

Uso:
    from app.observability import correlation_scope

    with correlation_scope(message_correlation_id(provider_id, message_id)):
        ...  # logs aqui carregam o correlation_id
"""

from __future__ import annotations

import hashlib
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

# ContextVar para correlation_id (thread/async-safe)
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id do contexto atual (ou string vazia)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation_id no contexto atual.

    Args:
        correlation_id: ID a definir. Se None, gera um novo UUID.

    Returns:
        Token para reset posterior via reset_correlation_id().
    """
    value = correlation_id or str(uuid.uuid4())
    return _correlation_id.set(value)


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


def message_correlation_id(provider_id: str, provider_message_id: str) -> str:
    """Correlation_id estável para um evento de provedor.

    Retries da mesma entrega compartilham o mesmo ID nos logs.
    """
    digest = hashlib.sha256(f"{provider_id}:{provider_message_id}".encode()).hexdigest()
    return f"msg-{digest[:16]}"


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Define correlation_id durante o bloco e restaura o anterior ao sair."""
    token = set_correlation_id(correlation_id)
    try:
        yield _correlation_id.get()
    finally:
        reset_correlation_id(token)
