"""Guarda de idempotência para entregas concorrentes do mesmo evento.

Fecha a janela entre "verificar" e "persistir": a primeira entrega reserva
a chave; cópias concorrentes encontram a reserva e são tratadas como
duplicadas. Não é o sistema de registro: após a persistência, a
verificação por provider_id do MessageDeduplicator é a autoridade.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.domain.fingerprint import compute_idempotency_key
from app.observability import mask_key

if TYPE_CHECKING:
    from datetime import datetime

    from app.protocols.dedupe import IdempotencyStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_IN_FLIGHT_TTL_SECONDS = 60


class IdempotencyGuard:
    """Fachada sobre o store de idempotência.

    Args:
        store: Backend do cache (memória ou Redis)
        ttl_seconds: TTL de chaves processadas
        in_flight_ttl_seconds: TTL da reserva durante o processamento
    """

    def __init__(
        self,
        store: IdempotencyStoreProtocol,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        in_flight_ttl_seconds: int = DEFAULT_IN_FLIGHT_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._in_flight_ttl_seconds = in_flight_ttl_seconds

    @staticmethod
    def deterministic_key(
        provider_id: str,
        provider_message_id: str,
        timestamp: datetime | None,
    ) -> str:
        """timestamp=None quando o provedor não informou o horário do evento."""
        return compute_idempotency_key(provider_id, provider_message_id, timestamp)

    async def check_idempotency(self, key: str) -> str | None:
        """Retorna o message_id já produzido para a chave, se houver."""
        message_id = await self._store.get_message_id(key)
        if message_id is not None:
            logger.debug("idempotency_hit", extra={"key": mask_key(key)})
        return message_id

    async def try_acquire(self, key: str) -> bool:
        """Reserva a chave para esta entrega. False se outra chegou antes."""
        acquired = await self._store.try_reserve(key, self._in_flight_ttl_seconds)
        if not acquired:
            logger.debug("idempotency_in_flight", extra={"key": mask_key(key)})
        return acquired

    async def release(self, key: str) -> None:
        await self._store.release(key)

    async def mark_as_processed(self, key: str, message_id: str) -> None:
        await self._store.mark_processed(key, message_id, self._ttl_seconds)
        logger.debug(
            "idempotency_marked",
            extra={"key": mask_key(key), "ttl": self._ttl_seconds},
        )

    async def clear_expired_entries(self) -> int:
        removed = await self._store.clear_expired()
        if removed:
            logger.info("idempotency_entries_expired", extra={"removed": removed})
        return removed
