"""Enums de domínio do pipeline de ingestão de mensagens."""

from __future__ import annotations

from enum import StrEnum


class Channel(StrEnum):
    """Canais de comunicação suportados."""

    SMS = "sms"
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    SLACK = "slack"


class Direction(StrEnum):
    """Direção da mensagem em relação ao negócio."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class ContentType(StrEnum):
    """Classificação do conteúdo principal da mensagem."""

    TEXT = "text"
    IMAGE = "image"
    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"
    LOCATION = "location"


class ContactType(StrEnum):
    """Tipos de identificador de contato."""

    PHONE = "phone"
    EMAIL = "email"
    SOCIAL = "social"


class DuplicateType(StrEnum):
    """Sinal que classificou a mensagem como duplicada."""

    NONE = "none"
    PROVIDER_ID = "provider_id"
    CONTENT_HASH = "content_hash"
    SIMILAR_CONTENT = "similar_content"


class IngestionStatus(StrEnum):
    """Desfechos terminais de uma mensagem no pipeline."""

    SUCCESS = "success"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class ConversationStatus(StrEnum):
    """Estados de uma conversa persistida."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class PipelineStage(StrEnum):
    """Estágios do pipeline, usados em ProcessingMetrics."""

    VALIDATION = "validation"
    NORMALIZATION = "normalization"
    MEDIA_RESOLUTION = "media_resolution"
    IDEMPOTENCY_CHECK = "idempotency_check"
    DUPLICATE_CHECK = "duplicate_check"
    IDENTITY_RESOLUTION = "identity_resolution"
    THREADING = "threading"
    PERSISTENCE = "persistence"
    CONVERSATION_UPDATE = "conversation_update"


class IngestionErrorCode(StrEnum):
    """Taxonomia de erros expostos em IngestionResult."""

    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    PROVIDER_NOT_SUPPORTED = "PROVIDER_NOT_SUPPORTED"
    DUPLICATE_MESSAGE = "DUPLICATE_MESSAGE"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    SIGNATURE_MISSING = "SIGNATURE_MISSING"
    IDENTITY_RESOLUTION_FAILURE = "IDENTITY_RESOLUTION_FAILURE"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    MEDIA_FETCH_FAILURE = "MEDIA_FETCH_FAILURE"
    THREADING_FAILURE = "THREADING_FAILURE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Falhas transitórias elegíveis para retry_failed_message
RETRYABLE_ERROR_CODES = frozenset(
    {
        IngestionErrorCode.PERSISTENCE_FAILURE,
        IngestionErrorCode.UNKNOWN_ERROR,
    }
)

# provider_meta: origem do timestamp ("provider" ou "received_at")
TIMESTAMP_SOURCE_KEY = "timestamp_source"
TIMESTAMP_FROM_RECEIPT = "received_at"
