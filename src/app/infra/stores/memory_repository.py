"""Repositório de ingestão em memória (desenvolvimento e testes).

Implementa IngestionRepositoryProtocol mantendo as mesmas restrições de
unicidade de um backend real. Escritas são serializadas por um
asyncio.Lock; leituras devolvem cópias imutáveis.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.constants.ingestion import ConversationStatus
from app.domain.contacts import strip_formatting
from app.protocols.models import (
    StoredConversation,
    StoredCustomer,
    StoredIdentity,
    StoredMessage,
)
from app.protocols.persistence import IngestionRepositoryProtocol

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from app.constants.ingestion import ContactType
    from app.protocols.models import Contact, ConversationRecord, MessageRecord

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _identity_key(contact_type: ContactType | str, value: str) -> tuple[str, str]:
    return (str(contact_type), value.lower())


class MemoryIngestionRepository(IngestionRepositoryProtocol):
    """Persistência de mensagens, identidades e conversas em dicts."""

    def __init__(self, *, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or (lambda: datetime.now(UTC))
        self._lock = asyncio.Lock()
        self.messages: dict[str, StoredMessage] = {}
        self.customers: dict[str, StoredCustomer] = {}
        self.identities: dict[tuple[str, str], StoredIdentity] = {}
        self.conversations: dict[str, StoredConversation] = {}
        self._message_by_provider: dict[tuple[str, str], str] = {}
        self._conversation_by_thread: dict[str, str] = {}

    # ──────────────────────────────────────────────────────────────
    # Mensagens
    # ──────────────────────────────────────────────────────────────

    async def find_message_by_provider_id(
        self,
        provider_id: str,
        provider_message_id: str,
    ) -> StoredMessage | None:
        message_id = self._message_by_provider.get((provider_id, provider_message_id))
        return self.messages.get(message_id) if message_id else None

    async def find_messages_by_pair(
        self,
        channel: str,
        from_value: str,
        to_value: str,
        since: datetime,
    ) -> Sequence[StoredMessage]:
        matches = [
            message
            for message in self.messages.values()
            if message.channel == channel
            and message.from_value == from_value
            and message.to_value == to_value
            and message.timestamp >= since
        ]
        return sorted(matches, key=lambda message: message.timestamp, reverse=True)

    async def create_message(self, record: MessageRecord) -> tuple[StoredMessage, bool]:
        message = record.message
        provider_key = (message.provider_id, message.provider_message_id)
        async with self._lock:
            existing_id = self._message_by_provider.get(provider_key)
            if existing_id is not None:
                return self.messages[existing_id], False

            stored = StoredMessage(
                id=_new_id("msg"),
                provider_id=message.provider_id,
                provider_message_id=message.provider_message_id,
                channel=str(message.channel),
                direction=str(message.direction),
                from_value=message.from_contact.normalized_value,
                to_value=message.to_contact.normalized_value,
                body=message.body,
                content_type=str(message.content_type),
                message_hash=message.message_hash,
                content_fingerprint=record.content_fingerprint,
                thread_key=message.thread_key,
                timestamp=message.timestamp,
                customer_id=record.customer_id,
                conversation_id=record.conversation_id,
            )
            self.messages[stored.id] = stored
            self._message_by_provider[provider_key] = stored.id
            return stored, True

    # ──────────────────────────────────────────────────────────────
    # Identidades e clientes
    # ──────────────────────────────────────────────────────────────

    async def find_identity(
        self,
        contact_type: ContactType,
        value: str,
    ) -> StoredIdentity | None:
        return self.identities.get(_identity_key(contact_type, value))

    async def find_identity_candidates(
        self,
        contact_type: ContactType,
        search_key: str,
        *,
        limit: int = 20,
    ) -> Sequence[StoredIdentity]:
        needle = strip_formatting(search_key)
        if not needle:
            return []
        candidates = [
            identity
            for (identity_type, _), identity in self.identities.items()
            if identity_type == str(contact_type) and needle in strip_formatting(identity.value)
        ]
        return candidates[:limit]

    async def create_identity_and_customer(
        self,
        contact: Contact,
        name: str,
        metadata: Mapping[str, Any],
    ) -> tuple[StoredCustomer, StoredIdentity]:
        key = _identity_key(contact.type, contact.normalized_value)
        async with self._lock:
            existing = self.identities.get(key)
            if existing is not None:
                logger.debug("identity_already_exists", extra={"customer_id": existing.customer_id})
                return self.customers[existing.customer_id], existing

            now = self._now()
            customer = StoredCustomer(
                id=_new_id("cus"),
                name=name,
                created_at=now,
                metadata=dict(metadata),
            )
            identity = self._new_identity(customer.id, contact, now)
            self.customers[customer.id] = customer
            self.identities[key] = identity
            return customer, identity

    async def link_identity(self, customer_id: str, contact: Contact) -> StoredIdentity:
        key = _identity_key(contact.type, contact.normalized_value)
        async with self._lock:
            existing = self.identities.get(key)
            if existing is not None:
                return existing
            identity = self._new_identity(customer_id, contact, self._now())
            self.identities[key] = identity
            return identity

    def _new_identity(self, customer_id: str, contact: Contact, now: datetime) -> StoredIdentity:
        return StoredIdentity(
            id=_new_id("idt"),
            customer_id=customer_id,
            type=contact.type,
            value=contact.normalized_value,
            raw_value=contact.raw_value,
            provider=contact.provider,
            linked_at=now,
        )

    # ──────────────────────────────────────────────────────────────
    # Conversas
    # ──────────────────────────────────────────────────────────────

    async def find_conversation_by_thread_key(
        self,
        thread_key: str,
    ) -> StoredConversation | None:
        conversation_id = self._conversation_by_thread.get(thread_key)
        return self.conversations.get(conversation_id) if conversation_id else None

    async def find_recent_conversation(
        self,
        channel: str,
        parties: Sequence[str],
        since: datetime,
    ) -> StoredConversation | None:
        wanted = tuple(sorted(parties))
        matches = [
            conversation
            for conversation in self.conversations.values()
            if conversation.channel == channel
            and conversation.status == ConversationStatus.ACTIVE
            and tuple(sorted(conversation.parties)) == wanted
            and conversation.last_message_at >= since
        ]
        if not matches:
            return None
        return max(matches, key=lambda conversation: conversation.last_message_at)

    async def create_conversation(self, record: ConversationRecord) -> StoredConversation:
        async with self._lock:
            existing_id = self._conversation_by_thread.get(record.thread_key)
            if existing_id is not None:
                return self.conversations[existing_id]
            conversation = StoredConversation(
                id=_new_id("conv"),
                thread_key=record.thread_key,
                channel=record.channel,
                parties=tuple(record.parties),
                status=ConversationStatus.ACTIVE,
                last_message_at=record.last_message_at,
                created_at=self._now(),
                customer_id=record.customer_id,
                tags=tuple(record.tags),
            )
            self.conversations[conversation.id] = conversation
            self._conversation_by_thread[conversation.thread_key] = conversation.id
            return conversation

    async def get_conversation(self, conversation_id: str) -> StoredConversation | None:
        return self.conversations.get(conversation_id)

    async def list_conversation_message_ids(
        self,
        conversation_id: str,
        *,
        limit: int = 20,
    ) -> Sequence[str]:
        messages = sorted(
            (m for m in self.messages.values() if m.conversation_id == conversation_id),
            key=lambda message: message.timestamp,
            reverse=True,
        )
        return [message.id for message in messages[:limit]]

    async def update_conversation_activity(
        self,
        conversation_id: str,
        last_message_at: datetime,
        tags: Sequence[str],
    ) -> StoredConversation | None:
        async with self._lock:
            conversation = self.conversations.get(conversation_id)
            if conversation is None:
                return None
            updated = replace(conversation, last_message_at=last_message_at, tags=tuple(tags))
            self.conversations[conversation_id] = updated
            return updated

    async def archive_conversations(self, before: datetime) -> int:
        archived = 0
        async with self._lock:
            for conversation_id, conversation in list(self.conversations.items()):
                if (
                    conversation.status == ConversationStatus.ACTIVE
                    and conversation.last_message_at < before
                ):
                    self.conversations[conversation_id] = replace(
                        conversation, status=ConversationStatus.ARCHIVED
                    )
                    archived += 1
        return archived
