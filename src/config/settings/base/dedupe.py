"""Settings do cache de idempotência.

O cache evita que duas entregas concorrentes do mesmo evento passem
da normalização. Em memória ele protege apenas um processo; com vários
workers use IDEMPOTENCY_BACKEND=redis.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

IdempotencyBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class IdempotencySettings:
    """Configurações do cache de idempotência.

    Attributes:
        backend: Backend do cache (memory|redis)
        ttl_seconds: TTL das chaves processadas
        in_flight_ttl_seconds: TTL da reserva enquanto a mensagem é processada
        max_entries: Limite de entradas do backend em memória
        key_prefix: Namespace das chaves no Redis
    """

    backend: IdempotencyBackend = "memory"
    ttl_seconds: int = 86400  # 24h
    in_flight_ttl_seconds: int = 60
    max_entries: int = 10_000
    key_prefix: str = "ingest:idem:"

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de idempotência.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.backend not in ("memory", "redis"):
            errors.append(f"IDEMPOTENCY_BACKEND inválido: {self.backend}")

        if self.backend == "redis" and not base.redis_url:
            errors.append("IDEMPOTENCY_BACKEND=redis requer REDIS_URL configurado")

        if self.ttl_seconds <= 0:
            errors.append("IDEMPOTENCY_TTL_SECONDS deve ser > 0")

        if self.in_flight_ttl_seconds <= 0:
            errors.append("IDEMPOTENCY_IN_FLIGHT_TTL_SECONDS deve ser > 0")

        if self.max_entries <= 0:
            errors.append("IDEMPOTENCY_MAX_ENTRIES deve ser > 0")

        return errors


def _load_idempotency_from_env() -> IdempotencySettings:
    """Carrega IdempotencySettings de variáveis de ambiente."""
    backend_str = os.getenv("IDEMPOTENCY_BACKEND", "memory").lower()
    backend: IdempotencyBackend = "redis" if backend_str == "redis" else "memory"
    return IdempotencySettings(
        backend=backend,
        ttl_seconds=int(os.getenv("IDEMPOTENCY_TTL_SECONDS", "86400")),
        in_flight_ttl_seconds=int(os.getenv("IDEMPOTENCY_IN_FLIGHT_TTL_SECONDS", "60")),
        max_entries=int(os.getenv("IDEMPOTENCY_MAX_ENTRIES", "10000")),
        key_prefix=os.getenv("IDEMPOTENCY_KEY_PREFIX", "ingest:idem:"),
    )


@lru_cache(maxsize=1)
def get_idempotency_settings() -> IdempotencySettings:
    """Retorna instância cacheada de IdempotencySettings."""
    return _load_idempotency_from_env()
