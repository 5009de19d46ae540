"""Protocolo do colaborador de persistência consumido pelo pipeline.

Qualquer backend (relacional, documento, memória) implementa este contrato.
O backend é responsável por serializar escritas concorrentes e por manter
as restrições de unicidade:
    - uma identidade por (type, value)
    - uma mensagem por (provider_id, provider_message_id)

"Não encontrado" é sempre None / lista vazia, nunca exceção.
Falhas de IO devem ser levantadas como utils.errors.PersistenceError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

    from app.constants.ingestion import ContactType
    from app.protocols.models import (
        Contact,
        ConversationRecord,
        MessageRecord,
        StoredConversation,
        StoredCustomer,
        StoredIdentity,
        StoredMessage,
    )


class IngestionRepositoryProtocol(ABC):
    """Contrato assíncrono de persistência para ingestão."""

    # ──────────────────────────────────────────────────────────────
    # Mensagens
    # ──────────────────────────────────────────────────────────────

    @abstractmethod
    async def find_message_by_provider_id(
        self,
        provider_id: str,
        provider_message_id: str,
    ) -> StoredMessage | None:
        """Busca mensagem pela chave nativa do provedor."""

    @abstractmethod
    async def find_messages_by_pair(
        self,
        channel: str,
        from_value: str,
        to_value: str,
        since: datetime,
    ) -> Sequence[StoredMessage]:
        """Lista mensagens do mesmo remetente/destinatário desde `since`.

        Args:
            channel: Canal da mensagem
            from_value: Valor normalizado do remetente
            to_value: Valor normalizado do destinatário
            since: Limite inferior (inclusivo) de timestamp

        Returns:
            Mensagens ordenadas da mais recente para a mais antiga.
        """

    @abstractmethod
    async def create_message(
        self,
        record: MessageRecord,
    ) -> tuple[StoredMessage, bool]:
        """Persiste mensagem respeitando unicidade por provedor.

        Returns:
            (mensagem, created). created=False quando já existia uma
            mensagem com o mesmo (provider_id, provider_message_id).
        """

    # ──────────────────────────────────────────────────────────────
    # Identidades e clientes
    # ──────────────────────────────────────────────────────────────

    @abstractmethod
    async def find_identity(
        self,
        contact_type: ContactType,
        value: str,
    ) -> StoredIdentity | None:
        """Busca identidade exata (comparação case-insensitive)."""

    @abstractmethod
    async def find_identity_candidates(
        self,
        contact_type: ContactType,
        search_key: str,
        *,
        limit: int = 20,
    ) -> Sequence[StoredIdentity]:
        """Lista identidades do mesmo tipo cujo valor contém `search_key`.

        A comparação ignora formatação (apenas letras e dígitos).
        """

    @abstractmethod
    async def create_identity_and_customer(
        self,
        contact: Contact,
        name: str,
        metadata: Mapping[str, Any],
    ) -> tuple[StoredCustomer, StoredIdentity]:
        """Cria cliente e identidade atomicamente.

        Se a identidade já existir (corrida entre workers), devolve a
        identidade existente e o cliente dono dela.
        """

    @abstractmethod
    async def link_identity(
        self,
        customer_id: str,
        contact: Contact,
    ) -> StoredIdentity:
        """Vincula identidade ao cliente; idempotente para (type, value)."""

    # ──────────────────────────────────────────────────────────────
    # Conversas
    # ──────────────────────────────────────────────────────────────

    @abstractmethod
    async def find_conversation_by_thread_key(
        self,
        thread_key: str,
    ) -> StoredConversation | None:
        """Busca conversa pela thread key exata."""

    @abstractmethod
    async def find_recent_conversation(
        self,
        channel: str,
        parties: Sequence[str],
        since: datetime,
    ) -> StoredConversation | None:
        """Busca conversa ativa mais recente entre as partes desde `since`."""

    @abstractmethod
    async def create_conversation(
        self,
        record: ConversationRecord,
    ) -> StoredConversation:
        """Cria conversa ativa."""

    @abstractmethod
    async def get_conversation(
        self,
        conversation_id: str,
    ) -> StoredConversation | None:
        """Busca conversa por ID."""

    @abstractmethod
    async def list_conversation_message_ids(
        self,
        conversation_id: str,
        *,
        limit: int = 20,
    ) -> Sequence[str]:
        """Lista IDs das mensagens mais recentes da conversa."""

    @abstractmethod
    async def update_conversation_activity(
        self,
        conversation_id: str,
        last_message_at: datetime,
        tags: Sequence[str],
    ) -> StoredConversation | None:
        """Grava last_message_at e o conjunto final de tags."""

    @abstractmethod
    async def archive_conversations(self, before: datetime) -> int:
        """Arquiva conversas ativas sem atividade desde `before`.

        Returns:
            Quantidade de conversas arquivadas.
        """
