"""Factory do pipeline de ingestão — wiring de serviços e normalizers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from api.normalizers import build_normalizer_table
from app.bootstrap.dependencies_stores import (
    create_idempotency_store,
    create_ingestion_repository,
    create_media_resolver,
)
from app.services import (
    ConversationGrouper,
    IdempotencyGuard,
    IdentityResolver,
    MessageDeduplicator,
)
from app.use_cases.ingestion import IngestionPipeline
from app.use_cases.ingestion.options import (
    deduplication_options_from_settings,
    identity_options_from_settings,
    threading_options_from_settings,
)
from config.settings import (
    get_email_settings,
    get_idempotency_settings,
    get_ingestion_settings,
    get_sms_settings,
)

if TYPE_CHECKING:
    from app.protocols.dedupe import IdempotencyStoreProtocol
    from app.protocols.media import MediaResolverProtocol
    from app.protocols.persistence import IngestionRepositoryProtocol
    from config.settings import IngestionSettings

logger = logging.getLogger(__name__)


def create_ingestion_pipeline(
    repository: IngestionRepositoryProtocol | None = None,
    *,
    idempotency_store: IdempotencyStoreProtocol | None = None,
    media_resolver: MediaResolverProtocol | None = None,
    settings: IngestionSettings | None = None,
) -> IngestionPipeline:
    """Cria IngestionPipeline com dependências resolvidas pelo ambiente.

    Args:
        repository: Persistência (padrão: em memória)
        idempotency_store: Store do guard (padrão: IDEMPOTENCY_BACKEND)
        media_resolver: Resolver de mídia (padrão: WhatsApp, se configurado)
        settings: Política do pipeline (padrão: env)
    """
    policy = settings or get_ingestion_settings()
    repo = repository or create_ingestion_repository()
    idempotency = get_idempotency_settings()
    sms = get_sms_settings()
    email = get_email_settings()

    normalizers = build_normalizer_table(
        default_country_code=policy.default_country_code,
        business_numbers=sms.business_numbers,
        business_domains=email.business_domains,
    )
    guard = IdempotencyGuard(
        idempotency_store or create_idempotency_store(),
        ttl_seconds=idempotency.ttl_seconds,
        in_flight_ttl_seconds=idempotency.in_flight_ttl_seconds,
    )

    pipeline = IngestionPipeline(
        repository=repo,
        normalizers=normalizers,
        idempotency_guard=guard,
        deduplicator=MessageDeduplicator(repo, deduplication_options_from_settings(policy)),
        identity_resolver=IdentityResolver(repo, identity_options_from_settings(policy)),
        conversation_grouper=ConversationGrouper(repo, threading_options_from_settings(policy)),
        media_resolver=media_resolver or create_media_resolver(),
        settings=policy,
    )
    logger.info(
        "ingestion_pipeline_created",
        extra={"providers": list(pipeline.supported_provider_types)},
    )
    return pipeline
