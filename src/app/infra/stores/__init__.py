"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - memory_stores: Store de idempotência em memória (local do processo)
    - redis_idempotency_store: Store de idempotência usando Redis (Upstash)
    - memory_repository: Repositório de ingestão em memória (dev/testes)
"""

from __future__ import annotations

from app.infra.stores.memory_repository import MemoryIngestionRepository
from app.infra.stores.memory_stores import MemoryIdempotencyStore
from app.infra.stores.redis_idempotency_store import RedisIdempotencyStore

__all__ = [
    # Memory
    "MemoryIdempotencyStore",
    "MemoryIngestionRepository",
    # Redis (Upstash)
    "RedisIdempotencyStore",
]
