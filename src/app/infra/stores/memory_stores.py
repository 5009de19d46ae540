"""Store de idempotência em memória.

Cache local do processo: protege apenas entregas concorrentes que caem
no mesmo worker. Com múltiplos workers use RedisIdempotencyStore.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.protocols.dedupe import IdempotencyStoreProtocol

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10_000


@dataclass(slots=True)
class _Entry:
    message_id: str | None  # None = reservado, em processamento
    expires_at: float


class MemoryIdempotencyStore(IdempotencyStoreProtocol):
    """Store de idempotência em memória, seguro para uso concorrente.

    Todas as operações passam por um único lock; o tamanho é limitado a
    `max_entries` (entradas mais antigas são descartadas primeiro).

    Args:
        max_entries: Limite de chaves mantidas
        clock: Fonte de tempo monotônico (injetável em testes)
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, _Entry] = {}
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    async def get_message_id(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            return entry.message_id if entry else None

    async def try_reserve(self, key: str, ttl: int) -> bool:
        with self._lock:
            if self._live_entry(key) is not None:
                return False
            self._put(key, _Entry(message_id=None, expires_at=self._clock() + ttl))
            return True

    async def mark_processed(self, key: str, message_id: str, ttl: int) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._put(key, _Entry(message_id=message_id, expires_at=self._clock() + ttl))

    async def release(self, key: str) -> None:
        with self._lock:
            entry = self._entries.get(key)
            # Só remove reservas; chaves processadas permanecem
            if entry is not None and entry.message_id is None:
                del self._entries[key]

    async def clear_expired(self) -> int:
        with self._lock:
            return self._evict_expired()

    # ──────────────────────────────────────────────────────────────
    # Internos (chamados com o lock adquirido)
    # ──────────────────────────────────────────────────────────────

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _put(self, key: str, entry: _Entry) -> None:
        self._entries[key] = entry
        if len(self._entries) > self._max_entries:
            self._evict_expired()
        while len(self._entries) > self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("idempotency_entry_evicted", extra={"reason": "max_entries"})

    def _evict_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)
