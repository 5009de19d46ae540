"""Testes do IdempotencyGuard."""

from __future__ import annotations

import pytest

from app.infra.stores import MemoryIdempotencyStore
from app.services.idempotency_guard import IdempotencyGuard
from tests.fakes.ingestion import FIXED_NOW


class TestIdempotencyGuard:
    @pytest.mark.asyncio
    async def test_first_delivery_acquires_second_is_in_flight(self) -> None:
        guard = IdempotencyGuard(MemoryIdempotencyStore())
        key = guard.deterministic_key("p", "m1", FIXED_NOW)

        assert await guard.check_idempotency(key) is None
        assert await guard.try_acquire(key) is True
        assert await guard.try_acquire(key) is False

    @pytest.mark.asyncio
    async def test_marked_key_returns_message_id(self) -> None:
        guard = IdempotencyGuard(MemoryIdempotencyStore())
        key = guard.deterministic_key("p", "m1", FIXED_NOW)

        await guard.try_acquire(key)
        await guard.mark_as_processed(key, "msg_1")

        assert await guard.check_idempotency(key) == "msg_1"
        assert await guard.try_acquire(key) is False

    @pytest.mark.asyncio
    async def test_release_allows_retry(self) -> None:
        guard = IdempotencyGuard(MemoryIdempotencyStore())
        key = guard.deterministic_key("p", "m1", FIXED_NOW)

        await guard.try_acquire(key)
        await guard.release(key)

        assert await guard.try_acquire(key) is True

    @pytest.mark.asyncio
    async def test_expired_entries_are_cleared(self) -> None:
        now = [0.0]
        store = MemoryIdempotencyStore(clock=lambda: now[0])
        guard = IdempotencyGuard(store, ttl_seconds=10)
        key = guard.deterministic_key("p", "m1", FIXED_NOW)
        await guard.mark_as_processed(key, "msg_1")

        now[0] = 11.0

        assert await guard.clear_expired_entries() == 1
        assert await guard.check_idempotency(key) is None

    def test_key_is_stable(self) -> None:
        assert IdempotencyGuard.deterministic_key("p", "m1", FIXED_NOW) == (
            IdempotencyGuard.deterministic_key("p", "m1", FIXED_NOW)
        )
