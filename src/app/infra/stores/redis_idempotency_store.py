"""Store de idempotência em Redis (Upstash compatível).

Duas chaves por evento:
    {prefix}processing:{key} -> reserva temporária (SET NX EX)
    {prefix}{key}            -> message_id produzido, TTL longo

Contrato de Keys:
    As keys são hashes SHA-256 (ver app/domain/fingerprint.py).
    NUNCA passar dados sensíveis (PII, telefones, emails) como key.
    Keys são logadas parcialmente em DEBUG.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.observability import mask_key
from app.protocols.dedupe import IdempotencyStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "ingest:idem:"


class RedisIdempotencyStore(IdempotencyStoreProtocol):
    """Store de idempotência compartilhado entre workers.

    Args:
        redis_client: Cliente Redis assíncrono
        key_prefix: Namespace das chaves
    """

    def __init__(
        self,
        redis_client: AsyncRedis,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self._redis = redis_client
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _processing_key(self, key: str) -> str:
        return f"{self._prefix}processing:{key}"

    async def get_message_id(self, key: str) -> str | None:
        try:
            value = await self._redis.get(self._key(key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar idempotência no Redis") from exc
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)

    async def try_reserve(self, key: str, ttl: int) -> bool:
        """Reserva atômica via SET NX EX; falha se a chave já foi processada."""
        try:
            if await self._redis.exists(self._key(key)):
                return False
            was_set = await self._redis.set(self._processing_key(key), "1", nx=True, ex=ttl)
        except Exception as exc:
            raise RedisConnectionError("Falha ao reservar chave no Redis") from exc
        if not was_set:
            logger.debug("idempotency_reservation_taken", extra={"key": mask_key(key)})
        return bool(was_set)

    async def mark_processed(self, key: str, message_id: str, ttl: int) -> None:
        try:
            pipeline = self._redis.pipeline()
            pipeline.setex(self._key(key), ttl, message_id)
            pipeline.delete(self._processing_key(key))
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao concluir idempotência no Redis") from exc
        logger.debug("idempotency_marked_redis", extra={"key": mask_key(key), "ttl": ttl})

    async def release(self, key: str) -> None:
        try:
            await self._redis.delete(self._processing_key(key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao liberar reserva no Redis") from exc

    async def clear_expired(self) -> int:
        # Expiração é feita pelo próprio Redis (EX/SETEX)
        return 0
