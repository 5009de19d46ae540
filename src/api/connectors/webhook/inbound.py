"""Fronteira do webhook: assinatura -> RawProviderMessage -> pipeline.

Falhas de assinatura e de corpo viram IngestionResult com falha no
estágio de validação, sem tocar o pipeline. Configuração incompleta do
verificador é erro operacional e propaga como WebhookConfigurationError.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from app.constants.ingestion import IngestionErrorCode, IngestionStatus, PipelineStage
from app.protocols.models import IngestionError, IngestionResult, ProcessingMetrics

from .event_id import build_raw_message
from .receive import (
    InvalidPayloadError,
    InvalidSignatureError,
    MissingSignatureError,
    parse_webhook_request,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.use_cases.ingestion import IngestionPipeline, PipelineOptions

    from .signature import SecretConfig

logger = logging.getLogger(__name__)


def _rejected(code: IngestionErrorCode, message: str, started_at: datetime) -> IngestionResult:
    finished_at = datetime.now(UTC)
    return IngestionResult(
        status=IngestionStatus.FAILED,
        processing_metrics=ProcessingMetrics(
            stages_failed=(str(PipelineStage.VALIDATION),),
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=(finished_at - started_at).total_seconds() * 1000,
        ),
        error=IngestionError(code=code, message=message, stage=str(PipelineStage.VALIDATION)),
    )


async def ingest_webhook(
    pipeline: IngestionPipeline,
    *,
    provider_id: str,
    provider_type: str,
    raw_body: bytes,
    headers: Mapping[str, str],
    secret_config: SecretConfig,
    webhook_url: str | None = None,
    options: PipelineOptions | None = None,
    now: float | None = None,
    received_at: datetime | None = None,
) -> IngestionResult:
    """Verifica, decodifica e encaminha um webhook ao pipeline.

    received_at: horário de recebimento (padrão: agora); replays de fila
    informam o original.

    Raises:
        WebhookConfigurationError: Secret ou URL do verificador ausentes
    """
    started_at = datetime.now(UTC)
    try:
        payload, _ = parse_webhook_request(
            provider_type, raw_body, headers, secret_config, webhook_url, now=now
        )
    except MissingSignatureError as exc:
        logger.warning(
            "webhook_signature_missing",
            extra={"provider_type": provider_type, "reason": str(exc)},
        )
        return _rejected(IngestionErrorCode.SIGNATURE_MISSING, str(exc), started_at)
    except InvalidSignatureError as exc:
        logger.warning(
            "webhook_signature_invalid",
            extra={"provider_type": provider_type, "reason": str(exc)},
        )
        return _rejected(IngestionErrorCode.SIGNATURE_INVALID, str(exc), started_at)
    except InvalidPayloadError as exc:
        logger.warning(
            "webhook_payload_invalid",
            extra={"provider_type": provider_type, "reason": str(exc)},
        )
        return _rejected(IngestionErrorCode.INVALID_PAYLOAD, str(exc), started_at)

    raw = build_raw_message(
        provider_id, provider_type, payload, raw_body, received_at=received_at or started_at
    )
    return await pipeline.process_message(raw, options)
