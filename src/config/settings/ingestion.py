"""Settings de política do pipeline de ingestão.

Limiares de similaridade, janelas de tempo, timeouts e retry. Os valores
padrão são políticas de produto e podem ser ajustados por env sem deploy
de código.
"""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field


class IngestionSettings(BaseModel):
    """Configurações de política usadas pelos serviços de ingestão."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    # Dedupe
    duplicate_window_minutes: int = Field(
        default=60,
        ge=1,
        description="Janela para duplicidade por hash/similaridade.",
    )
    similarity_threshold: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Similaridade mínima para considerar conteúdo duplicado.",
    )

    # Identidade
    fuzzy_matching_enabled: bool = Field(default=True)
    identity_confidence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    create_new_customers: bool = Field(default=True)
    default_country_code: str = Field(
        default="1",
        pattern=r"^\d{1,3}$",
        description="Código de país aplicado a números de 10 dígitos sem '+'.",
    )

    # Conversas
    max_conversation_age_hours: int = Field(default=168, ge=1)
    archive_after_hours: int = Field(default=168, ge=1)

    # Timeouts de colaboradores externos
    persistence_timeout_seconds: float = Field(default=10.0, gt=0)
    media_timeout_seconds: float = Field(default=5.0, gt=0)

    # Retry
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_ms: int = Field(default=1000, ge=0)
    retry_max_delay_ms: int = Field(default=10_000, ge=0)


def _parse_bool(value: str) -> bool:
    """Converte texto de env em bool com o mesmo padrao dos outros settings."""
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _load_ingestion_from_env() -> IngestionSettings:
    """Carrega IngestionSettings a partir de variáveis de ambiente."""
    return IngestionSettings(
        duplicate_window_minutes=int(os.getenv("INGESTION_DUPLICATE_WINDOW_MINUTES", "60")),
        similarity_threshold=float(os.getenv("INGESTION_SIMILARITY_THRESHOLD", "0.85")),
        fuzzy_matching_enabled=_parse_bool(os.getenv("INGESTION_FUZZY_MATCHING", "true")),
        identity_confidence_threshold=float(
            os.getenv("INGESTION_IDENTITY_CONFIDENCE_THRESHOLD", "0.5")
        ),
        create_new_customers=_parse_bool(os.getenv("INGESTION_CREATE_NEW_CUSTOMERS", "true")),
        default_country_code=os.getenv("INGESTION_DEFAULT_COUNTRY_CODE", "1"),
        max_conversation_age_hours=int(os.getenv("INGESTION_MAX_CONVERSATION_AGE_HOURS", "168")),
        archive_after_hours=int(os.getenv("INGESTION_ARCHIVE_AFTER_HOURS", "168")),
        persistence_timeout_seconds=float(
            os.getenv("INGESTION_PERSISTENCE_TIMEOUT_SECONDS", "10")
        ),
        media_timeout_seconds=float(os.getenv("INGESTION_MEDIA_TIMEOUT_SECONDS", "5")),
        max_retries=int(os.getenv("INGESTION_MAX_RETRIES", "3")),
        retry_base_delay_ms=int(os.getenv("INGESTION_RETRY_BASE_DELAY_MS", "1000")),
        retry_max_delay_ms=int(os.getenv("INGESTION_RETRY_MAX_DELAY_MS", "10000")),
    )


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """Retorna instancia cacheada de IngestionSettings."""
    return _load_ingestion_from_env()


__all__ = ["IngestionSettings", "get_ingestion_settings"]
