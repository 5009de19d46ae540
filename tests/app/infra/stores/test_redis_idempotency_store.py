"""Testes do RedisIdempotencyStore com mock."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.infra.stores.redis_idempotency_store import RedisIdempotencyStore
from utils.errors import RedisConnectionError


def _redis() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.exists = AsyncMock(return_value=0)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    return client


class TestRedisIdempotencyStore:
    """Testes do RedisIdempotencyStore."""

    @pytest.mark.asyncio
    async def test_get_message_id_decodes_bytes(self) -> None:
        """Valor bytes do Redis deve virar str."""
        client = _redis()
        client.get.return_value = b"msg_1"
        store = RedisIdempotencyStore(client)

        assert await store.get_message_id("abc") == "msg_1"
        client.get.assert_awaited_once_with("ingest:idem:abc")

    @pytest.mark.asyncio
    async def test_try_reserve_uses_set_nx(self) -> None:
        """Reserva usa SET NX EX na chave de processamento."""
        client = _redis()
        store = RedisIdempotencyStore(client)

        assert await store.try_reserve("abc", ttl=45) is True
        client.set.assert_awaited_once_with("ingest:idem:processing:abc", "1", nx=True, ex=45)

    @pytest.mark.asyncio
    async def test_try_reserve_refuses_processed_key(self) -> None:
        """Chave já processada não deve ser reservada."""
        client = _redis()
        client.exists.return_value = 1
        store = RedisIdempotencyStore(client)

        assert await store.try_reserve("abc", ttl=45) is False
        client.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_try_reserve_taken(self) -> None:
        client = _redis()
        client.set.return_value = None
        store = RedisIdempotencyStore(client)

        assert await store.try_reserve("abc", ttl=45) is False

    @pytest.mark.asyncio
    async def test_mark_processed_promotes_and_clears_reservation(self) -> None:
        """mark_processed grava o resultado e remove a reserva no mesmo pipeline."""
        client = _redis()
        pipeline = MagicMock()
        pipeline.execute = AsyncMock(return_value=[True, 1])
        client.pipeline.return_value = pipeline
        store = RedisIdempotencyStore(client, key_prefix="t:")

        await store.mark_processed("abc", "msg_1", ttl=3600)

        pipeline.setex.assert_called_once_with("t:abc", 3600, "msg_1")
        pipeline.delete.assert_called_once_with("t:processing:abc")
        pipeline.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_release_deletes_reservation(self) -> None:
        client = _redis()
        store = RedisIdempotencyStore(client)

        await store.release("abc")

        client.delete.assert_awaited_once_with("ingest:idem:processing:abc")

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self) -> None:
        """Falhas do cliente viram RedisConnectionError."""
        client = _redis()
        client.get.side_effect = ConnectionError("down")
        store = RedisIdempotencyStore(client)

        with pytest.raises(RedisConnectionError):
            await store.get_message_id("abc")

    @pytest.mark.asyncio
    async def test_clear_expired_is_delegated_to_redis(self) -> None:
        assert await RedisIdempotencyStore(_redis()).clear_expired() == 0
