"""Factories de stores e infra baseadas em configuração de ambiente."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.bootstrap.clients import create_async_redis_client
from app.infra.media import WhatsAppMediaResolver
from app.infra.stores import (
    MemoryIdempotencyStore,
    MemoryIngestionRepository,
    RedisIdempotencyStore,
)
from config.settings import (
    get_base_settings,
    get_idempotency_settings,
    get_whatsapp_settings,
)

if TYPE_CHECKING:
    from app.protocols.dedupe import IdempotencyStoreProtocol
    from app.protocols.media import MediaResolverProtocol
    from app.protocols.persistence import IngestionRepositoryProtocol

logger = logging.getLogger(__name__)


def create_idempotency_store() -> IdempotencyStoreProtocol:
    """Cria store de idempotência conforme IDEMPOTENCY_BACKEND."""
    settings = get_idempotency_settings()
    environment = get_base_settings().environment

    if settings.backend == "redis":
        store = RedisIdempotencyStore(create_async_redis_client(), key_prefix=settings.key_prefix)
        logger.info("idempotency_store_created", extra={"backend": "redis"})
        return store

    if environment not in ("development", "test"):
        # Em memória cada worker enxerga só as próprias reservas
        logger.warning(
            "memory_idempotency_in_non_dev",
            extra={"backend": "memory", "environment": environment},
        )
    store = MemoryIdempotencyStore(max_entries=settings.max_entries)
    logger.info("idempotency_store_created", extra={"backend": "memory"})
    return store


def create_ingestion_repository() -> IngestionRepositoryProtocol:
    """Repositório padrão (em memória).

    Backends duráveis implementam IngestionRepositoryProtocol e são
    passados diretamente a create_ingestion_pipeline.
    """
    environment = get_base_settings().environment
    if environment not in ("development", "test"):
        logger.warning(
            "memory_repository_in_non_dev",
            extra={"backend": "memory", "environment": environment},
        )
    return MemoryIngestionRepository()


def create_media_resolver() -> MediaResolverProtocol | None:
    """Resolver de mídia do WhatsApp, ou None sem access token."""
    settings = get_whatsapp_settings()
    if not settings.access_token:
        logger.info("media_resolver_disabled", extra={"reason": "missing_access_token"})
        return None
    return WhatsAppMediaResolver(settings)
