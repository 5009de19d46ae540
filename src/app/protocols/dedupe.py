"""Protocolos de domínio para stores de idempotência.

Interfaces leves (ABCs) dependidas por Application.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IdempotencyStoreProtocol(ABC):
    """Contrato assíncrono para o cache de idempotência.

    Cada chave passa por dois estados:
    - em processamento: reservada por try_reserve, sem message_id
    - processada: gravada por mark_processed com o message_id resultante

    Implementações devem ser seguras para leitura/escrita/expiração
    concorrentes.
    """

    @abstractmethod
    async def get_message_id(self, key: str) -> str | None:
        """Retorna o message_id de uma chave processada e não expirada."""

    @abstractmethod
    async def try_reserve(self, key: str, ttl: int) -> bool:
        """Reserva a chave atomicamente.

        Args:
            key: Chave de idempotência (hash opaco)
            ttl: TTL da reserva em segundos

        Returns:
            True se reservou agora; False se já estava reservada ou processada.
        """

    @abstractmethod
    async def mark_processed(self, key: str, message_id: str, ttl: int) -> None:
        """Marca a chave como processada, substituindo a reserva."""

    @abstractmethod
    async def release(self, key: str) -> None:
        """Remove a reserva de processamento (falha no pipeline)."""

    @abstractmethod
    async def clear_expired(self) -> int:
        """Remove entradas expiradas e retorna quantas foram removidas."""
