"""Modelos canônicos do pipeline de ingestão.

Value objects imutáveis trocados entre normalizers, serviços e o use case.
Nenhum modelo aqui faz IO; registros persistidos (Stored*) são devolvidos
pelo colaborador de persistência (ver app/protocols/persistence.py).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - usado em runtime nos dataclasses
from types import MappingProxyType
from typing import Any

from app.constants.ingestion import (
    TIMESTAMP_FROM_RECEIPT,
    TIMESTAMP_SOURCE_KEY,
    Channel,
    ContactType,
    ContentType,
    ConversationStatus,
    Direction,
    DuplicateType,
    IngestionErrorCode,
    IngestionStatus,
)
from app.domain.fingerprint import compute_content_fingerprint


def _freeze_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Copia o mapping e devolve visão somente-leitura."""
    return MappingProxyType(dict(value or {}))


# ──────────────────────────────────────────────────────────────
# Entrada e normalização
# ──────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RawProviderMessage:
    """Evento bruto recebido no webhook, antes de qualquer normalização.

    Attributes:
        provider_id: Identificador da integração (ex.: conta Twilio)
        provider_message_id: ID nativo da mensagem no provedor
        provider_type: Tag do provedor (ex.: twilio_sms, whatsapp, gmail)
        channel: Canal de comunicação
        payload: Corpo do webhook (bytes, texto ou JSON já decodificado)
        received_at: Momento de recebimento (timezone-aware)
    """

    provider_id: str
    provider_message_id: str
    provider_type: str
    channel: Channel | str
    payload: bytes | str | Mapping[str, Any]
    received_at: datetime


@dataclass(frozen=True, slots=True)
class Contact:
    """Identificador de contato normalizado (value object)."""

    identifier: str
    normalized_value: str
    raw_value: str
    type: ContactType
    provider: str


@dataclass(frozen=True, slots=True)
class Attachment:
    """Anexo de mensagem. url vazia indica mídia não resolvida."""

    type: ContentType
    url: str = ""
    filename: str | None = None
    mime_type: str | None = None
    media_id: str | None = None
    size_bytes: int | None = None

    @property
    def is_resolved(self) -> bool:
        return bool(self.url)


@dataclass(frozen=True, slots=True)
class NormalizedMessage:
    """Mensagem canônica produzida por um normalizer.

    Imutável: correções geram um novo valor via dataclasses.replace.
    provider_meta é exposto como mapping somente-leitura.
    """

    provider_message_id: str
    provider_id: str
    channel: Channel
    direction: Direction
    from_contact: Contact
    to_contact: Contact
    timestamp: datetime
    body: str | None
    content_type: ContentType
    thread_key: str
    message_hash: str
    provider_meta: Mapping[str, Any] = field(default_factory=dict)
    attachments: tuple[Attachment, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "provider_meta", _freeze_mapping(self.provider_meta))
        object.__setattr__(self, "attachments", tuple(self.attachments))

    @property
    def has_provider_timestamp(self) -> bool:
        """False quando o timestamp é o received_at do webhook."""
        return self.provider_meta.get(TIMESTAMP_SOURCE_KEY) != TIMESTAMP_FROM_RECEIPT

    @property
    def customer_contact(self) -> Contact:
        """Contato do lado cliente conforme a direção."""
        if self.direction == Direction.INBOUND:
            return self.from_contact
        return self.to_contact

    @property
    def business_contact(self) -> Contact:
        """Contato do lado negócio conforme a direção."""
        if self.direction == Direction.INBOUND:
            return self.to_contact
        return self.from_contact


# ──────────────────────────────────────────────────────────────
# Resultados dos serviços
# ──────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DuplicateCheckResult:
    """Resultado da verificação de duplicidade."""

    is_duplicate: bool
    duplicate_type: DuplicateType = DuplicateType.NONE
    confidence: float = 0.0
    existing_message_id: str | None = None

    @classmethod
    def not_duplicate(cls) -> DuplicateCheckResult:
        return cls(is_duplicate=False)


@dataclass(frozen=True, slots=True)
class IdentityMatch:
    """Identidade encontrada durante a resolução."""

    identity_id: str
    customer_id: str
    type: ContactType
    value: str
    confidence: float


@dataclass(frozen=True, slots=True)
class IdentityResolution:
    """Resultado da resolução de identidade de um contato.

    customer_id é preenchido quando houve match (is_new_customer=False)
    ou quando o cliente acabou de ser criado por create_or_link_identity.
    """

    customer_id: str | None
    is_new_customer: bool
    confidence: float
    matched_identities: tuple[IdentityMatch, ...] = ()
    suggested_name: str | None = None


@dataclass(frozen=True, slots=True)
class ThreadingResult:
    """Resultado do agrupamento em conversa."""

    conversation_id: str | None
    is_new_conversation: bool
    thread_key: str
    related_messages: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ProcessingMetrics:
    """Rastro de estágios executados para uma mensagem."""

    stages_completed: tuple[str, ...] = ()
    stages_failed: tuple[str, ...] = ()
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_ms: float = 0.0
    attempts: int = 1


@dataclass(frozen=True, slots=True)
class IngestionError:
    """Erro estruturado exposto ao chamador do pipeline."""

    code: IngestionErrorCode
    message: str
    stage: str | None = None
    retryable: bool = False
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", _freeze_mapping(self.details))


@dataclass(frozen=True, slots=True)
class IngestionResult:
    """Saída do pipeline para uma mensagem."""

    status: IngestionStatus
    processing_metrics: ProcessingMetrics
    message_id: str | None = None
    normalized_message: NormalizedMessage | None = None
    identity_resolution: IdentityResolution | None = None
    threading_context: ThreadingResult | None = None
    error: IngestionError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == IngestionStatus.SUCCESS


# ──────────────────────────────────────────────────────────────
# Registros persistidos
# ──────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class MessageRecord:
    """Dados para criação de uma mensagem persistida."""

    message: NormalizedMessage
    customer_id: str | None = None
    conversation_id: str | None = None

    @property
    def content_fingerprint(self) -> str:
        return compute_content_fingerprint(self.message)


@dataclass(frozen=True, slots=True)
class StoredMessage:
    """Mensagem já persistida."""

    id: str
    provider_id: str
    provider_message_id: str
    channel: str
    direction: str
    from_value: str
    to_value: str
    body: str | None
    content_type: str
    message_hash: str
    thread_key: str
    timestamp: datetime
    customer_id: str | None = None
    conversation_id: str | None = None
    content_fingerprint: str | None = None


@dataclass(frozen=True, slots=True)
class StoredCustomer:
    """Cliente persistido."""

    id: str
    name: str
    created_at: datetime
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StoredIdentity:
    """Identidade (telefone/email/handle) vinculada a um cliente."""

    id: str
    customer_id: str
    type: ContactType
    value: str
    raw_value: str
    provider: str
    linked_at: datetime
    verified: bool = False


@dataclass(frozen=True, slots=True)
class ConversationRecord:
    """Dados para criação de uma conversa."""

    thread_key: str
    channel: str
    parties: tuple[str, ...]
    last_message_at: datetime
    customer_id: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StoredConversation:
    """Conversa persistida."""

    id: str
    thread_key: str
    channel: str
    parties: tuple[str, ...]
    status: ConversationStatus
    last_message_at: datetime
    created_at: datetime
    customer_id: str | None = None
    tags: tuple[str, ...] = ()
