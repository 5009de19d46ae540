"""Agrupamento de mensagens em conversas.

Busca, em ordem: conversa pela thread key exata; conversa ativa recente
entre as mesmas partes (evita fragmentar a thread quando a chave muda,
por exemplo numa resposta com contexto); criação de conversa nova. Com
criação desabilitada e nada encontrado, devolve "sem conversa".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from app.domain.thread_key import generate_contextual_thread_key, generate_thread_key
from app.protocols.models import ConversationRecord, ThreadingResult

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from app.protocols.models import NormalizedMessage, StoredConversation
    from app.protocols.persistence import IngestionRepositoryProtocol

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_AFTER_HOURS = 168


@dataclass(frozen=True, slots=True)
class ThreadingOptions:
    """Opções de agrupamento em conversa."""

    create_new_conversation: bool = True
    prefer_existing_threads: bool = True
    max_conversation_age_hours: int = 168
    related_messages_limit: int = 20


def build_conversation_tags(message: NormalizedMessage) -> tuple[str, ...]:
    """Tags iniciais derivadas da mensagem."""
    return (
        f"channel:{message.channel}",
        f"direction:{message.direction}",
        f"content:{message.content_type}",
    )


def merge_tags(existing: Iterable[str], new_tags: Iterable[str]) -> tuple[str, ...]:
    """União com semântica de conjunto, preservando a ordem de chegada."""
    return tuple(dict.fromkeys([*existing, *new_tags]))


class ConversationGrouper:
    """Serviço de threading com persistência injetada."""

    # Re-exportados para quem usa o grouper como fachada
    generate_thread_key = staticmethod(generate_thread_key)
    generate_contextual_thread_key = staticmethod(generate_contextual_thread_key)

    def __init__(
        self,
        repository: IngestionRepositoryProtocol,
        default_options: ThreadingOptions | None = None,
        *,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._default_options = default_options or ThreadingOptions()
        self._now = now or (lambda: datetime.now(UTC))

    async def group_into_conversation(
        self,
        message: NormalizedMessage,
        customer_id: str | None,
        options: ThreadingOptions | None = None,
    ) -> ThreadingResult:
        """Atribui a mensagem a uma conversa existente ou nova."""
        opts = options or self._default_options

        conversation = await self._repository.find_conversation_by_thread_key(message.thread_key)
        # Thread nativa do provedor (ex.: threadId do Gmail) nunca é mesclada
        native_thread = message.provider_meta.get("native_thread_id")
        if conversation is None and opts.prefer_existing_threads and not native_thread:
            conversation = await self._find_recent(message, opts)

        if conversation is not None:
            related = await self._repository.list_conversation_message_ids(
                conversation.id, limit=opts.related_messages_limit
            )
            return ThreadingResult(
                conversation_id=conversation.id,
                is_new_conversation=False,
                thread_key=conversation.thread_key,
                related_messages=tuple(related),
            )

        if not opts.create_new_conversation:
            logger.debug("conversation_not_found_creation_disabled")
            return ThreadingResult(
                conversation_id=None,
                is_new_conversation=False,
                thread_key=message.thread_key,
            )

        created = await self._repository.create_conversation(
            ConversationRecord(
                thread_key=message.thread_key,
                channel=str(message.channel),
                parties=_parties(message),
                last_message_at=message.timestamp,
                customer_id=customer_id,
                tags=build_conversation_tags(message),
            )
        )
        logger.info(
            "conversation_created",
            extra={"conversation_id": created.id, "channel": str(message.channel)},
        )
        return ThreadingResult(
            conversation_id=created.id,
            is_new_conversation=True,
            thread_key=created.thread_key,
        )

    async def update_conversation_activity(
        self,
        conversation_id: str,
        timestamp: datetime,
        new_tags: Iterable[str] | None = None,
    ) -> StoredConversation | None:
        """Atualiza last_message_at (nunca para trás) e une tags."""
        conversation = await self._repository.get_conversation(conversation_id)
        if conversation is None:
            logger.warning(
                "conversation_activity_target_missing",
                extra={"conversation_id": conversation_id},
            )
            return None

        last_message_at = max(conversation.last_message_at, timestamp)
        tags = merge_tags(conversation.tags, new_tags or ())
        return await self._repository.update_conversation_activity(
            conversation_id, last_message_at, tags
        )

    async def archive_inactive_conversations(
        self,
        older_than_hours: int = DEFAULT_ARCHIVE_AFTER_HOURS,
    ) -> int:
        """Arquiva conversas ativas sem mensagens há mais de `older_than_hours`."""
        cutoff = self._now() - timedelta(hours=older_than_hours)
        archived = await self._repository.archive_conversations(cutoff)
        logger.info(
            "conversations_archived",
            extra={"archived": archived, "older_than_hours": older_than_hours},
        )
        return archived

    async def _find_recent(
        self,
        message: NormalizedMessage,
        opts: ThreadingOptions,
    ) -> StoredConversation | None:
        since = message.timestamp - timedelta(hours=opts.max_conversation_age_hours)
        conversation = await self._repository.find_recent_conversation(
            str(message.channel), _parties(message), since
        )
        if conversation is not None:
            logger.debug(
                "conversation_recent_match",
                extra={"conversation_id": conversation.id},
            )
        return conversation


def _parties(message: NormalizedMessage) -> tuple[str, ...]:
    return tuple(
        sorted((message.from_contact.normalized_value, message.to_contact.normalized_value))
    )
