"""Testes do ConversationGrouper."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.constants.ingestion import ConversationStatus, Direction
from app.infra.stores import MemoryIngestionRepository
from app.protocols.models import MessageRecord
from app.services.conversation_grouper import (
    ConversationGrouper,
    ThreadingOptions,
    build_conversation_tags,
    merge_tags,
)
from tests.fakes.ingestion import (
    BUSINESS_PHONE,
    CUSTOMER_PHONE,
    FIXED_NOW,
    FakeClock,
    make_message,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo(clock: FakeClock) -> MemoryIngestionRepository:
    return MemoryIngestionRepository(now=clock)


@pytest.fixture
def grouper(repo: MemoryIngestionRepository, clock: FakeClock) -> ConversationGrouper:
    return ConversationGrouper(repo, now=clock)


class TestTags:
    def test_initial_tags(self) -> None:
        assert build_conversation_tags(make_message()) == (
            "channel:sms",
            "direction:inbound",
            "content:text",
        )

    def test_merge_is_ordered_union(self) -> None:
        assert merge_tags(("a", "b"), ("b", "c")) == ("a", "b", "c")


class TestGroupIntoConversation:
    @pytest.mark.asyncio
    async def test_first_message_creates_conversation(self, repo, grouper) -> None:
        result = await grouper.group_into_conversation(make_message(), "cus_1")

        assert result.is_new_conversation is True
        stored = repo.conversations[result.conversation_id]
        assert stored.customer_id == "cus_1"
        assert stored.parties == tuple(sorted((CUSTOMER_PHONE, BUSINESS_PHONE)))
        assert stored.status == ConversationStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_reply_lands_in_same_conversation(self, repo, grouper) -> None:
        first = await grouper.group_into_conversation(make_message(), None)
        await repo.create_message(
            MessageRecord(message=make_message(), conversation_id=first.conversation_id)
        )

        reply = make_message(
            provider_message_id="SM101",
            direction=Direction.OUTBOUND,
            from_value=BUSINESS_PHONE,
            to_value=CUSTOMER_PHONE,
            timestamp=FIXED_NOW + timedelta(minutes=2),
        )
        result = await grouper.group_into_conversation(reply, None)

        assert result.conversation_id == first.conversation_id
        assert result.is_new_conversation is False
        assert len(result.related_messages) == 1

    @pytest.mark.asyncio
    async def test_contextual_key_joins_recent_conversation(self, grouper) -> None:
        first = await grouper.group_into_conversation(make_message(), None)

        contextual = make_message(
            provider_message_id="SM102",
            thread_key="reply-thread-key",
            timestamp=FIXED_NOW + timedelta(hours=1),
        )
        result = await grouper.group_into_conversation(contextual, None)

        assert result.conversation_id == first.conversation_id

    @pytest.mark.asyncio
    async def test_recent_lookup_respects_max_age(self, grouper) -> None:
        first = await grouper.group_into_conversation(make_message(), None)

        late = make_message(
            provider_message_id="SM103",
            thread_key="reply-thread-key",
            timestamp=FIXED_NOW + timedelta(hours=200),
        )
        result = await grouper.group_into_conversation(late, None)

        assert result.conversation_id != first.conversation_id
        assert result.is_new_conversation is True

    @pytest.mark.asyncio
    async def test_native_thread_is_never_merged(self, grouper) -> None:
        first = await grouper.group_into_conversation(make_message(), None)

        native = make_message(
            provider_message_id="SM104",
            thread_key="gmail-thread",
            provider_meta={"native_thread_id": "18c2f0a1b2c3d4e5"},
        )
        result = await grouper.group_into_conversation(native, None)

        assert result.conversation_id != first.conversation_id

    @pytest.mark.asyncio
    async def test_creation_disabled_returns_no_conversation(self, repo, grouper) -> None:
        result = await grouper.group_into_conversation(
            make_message(), None, ThreadingOptions(create_new_conversation=False)
        )

        assert result.conversation_id is None
        assert result.is_new_conversation is False
        assert repo.conversations == {}


class TestConversationMaintenance:
    @pytest.mark.asyncio
    async def test_activity_never_moves_backwards(self, grouper) -> None:
        created = await grouper.group_into_conversation(make_message(), None)

        updated = await grouper.update_conversation_activity(
            created.conversation_id, FIXED_NOW - timedelta(hours=1), ("priority:high",)
        )

        assert updated.last_message_at == FIXED_NOW
        assert "priority:high" in updated.tags
        assert "channel:sms" in updated.tags

    @pytest.mark.asyncio
    async def test_missing_conversation_returns_none(self, grouper) -> None:
        assert await grouper.update_conversation_activity("conv_x", FIXED_NOW) is None

    @pytest.mark.asyncio
    async def test_archive_inactive(self, repo, grouper, clock) -> None:
        created = await grouper.group_into_conversation(make_message(), None)
        clock.advance(hours=169)

        assert await grouper.archive_inactive_conversations() == 1
        assert repo.conversations[created.conversation_id].status == ConversationStatus.ARCHIVED
        assert await grouper.archive_inactive_conversations() == 0
