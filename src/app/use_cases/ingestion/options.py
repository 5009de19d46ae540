"""Opções por chamada do pipeline de ingestão."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.services.conversation_grouper import ThreadingOptions
from app.services.deduplicator import DeduplicationOptions
from app.services.identity_resolver import IdentityResolutionOptions

if TYPE_CHECKING:
    from config.settings.ingestion import IngestionSettings


@dataclass(frozen=True, slots=True)
class PipelineOptions:
    """Liga/desliga estágios e sobrescreve opções dos serviços.

    Attributes:
        skip_duplicate_check: Pula o MessageDeduplicator (a idempotência
            e a unicidade na persistência continuam valendo)
        skip_identity_resolution: Persiste sem customer_id
        skip_threading: Persiste sem conversation_id
        skip_media_resolution: Mantém anexos com url vazia
        continue_on_identity_failure: False torna a falha de identidade fatal
        deduplication: Opções do deduplicator (None = padrão do serviço)
        identity: Opções do resolver (None = padrão do serviço)
        threading: Opções do grouper (None = padrão do serviço)
        persistence_timeout_seconds: None = valor de IngestionSettings
        media_timeout_seconds: None = valor de IngestionSettings
    """

    skip_duplicate_check: bool = False
    skip_identity_resolution: bool = False
    skip_threading: bool = False
    skip_media_resolution: bool = False
    continue_on_identity_failure: bool = True
    deduplication: DeduplicationOptions | None = None
    identity: IdentityResolutionOptions | None = None
    threading: ThreadingOptions | None = None
    persistence_timeout_seconds: float | None = None
    media_timeout_seconds: float | None = None


def deduplication_options_from_settings(settings: IngestionSettings) -> DeduplicationOptions:
    return DeduplicationOptions(
        time_window_minutes=settings.duplicate_window_minutes,
        similarity_threshold=settings.similarity_threshold,
    )


def identity_options_from_settings(settings: IngestionSettings) -> IdentityResolutionOptions:
    return IdentityResolutionOptions(
        fuzzy_matching=settings.fuzzy_matching_enabled,
        confidence_threshold=settings.identity_confidence_threshold,
        create_new_customer=settings.create_new_customers,
    )


def threading_options_from_settings(settings: IngestionSettings) -> ThreadingOptions:
    return ThreadingOptions(max_conversation_age_hours=settings.max_conversation_age_hours)


__all__ = [
    "PipelineOptions",
    "deduplication_options_from_settings",
    "identity_options_from_settings",
    "threading_options_from_settings",
]
