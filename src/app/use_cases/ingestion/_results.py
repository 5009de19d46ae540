"""Construtores de IngestionResult para desfechos não-sucesso."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.constants.ingestion import (
    RETRYABLE_ERROR_CODES,
    DuplicateType,
    IngestionErrorCode,
    IngestionStatus,
)
from app.protocols.models import IngestionError, IngestionResult

if TYPE_CHECKING:
    from app.protocols.models import NormalizedMessage, ProcessingMetrics


def failed_result(
    code: IngestionErrorCode,
    message: str,
    metrics: ProcessingMetrics,
    *,
    stage: str | None = None,
    normalized_message: NormalizedMessage | None = None,
    details: dict[str, Any] | None = None,
) -> IngestionResult:
    """Resultado FAILED; retryable deriva do código do erro."""
    return IngestionResult(
        status=IngestionStatus.FAILED,
        processing_metrics=metrics,
        normalized_message=normalized_message,
        error=IngestionError(
            code=code,
            message=message,
            stage=stage,
            retryable=code in RETRYABLE_ERROR_CODES,
            details=details or {},
        ),
    )


def duplicate_result(
    metrics: ProcessingMetrics,
    *,
    normalized_message: NormalizedMessage,
    existing_message_id: str | None,
    duplicate_type: DuplicateType,
    stage: str,
    confidence: float = 1.0,
    in_flight: bool = False,
) -> IngestionResult:
    """Resultado DUPLICATE apontando para a mensagem original, quando conhecida."""
    details: dict[str, Any] = {
        "duplicate_type": str(duplicate_type),
        "confidence": confidence,
        "existing_message_id": existing_message_id,
    }
    if in_flight:
        details["in_flight"] = True
    return IngestionResult(
        status=IngestionStatus.DUPLICATE,
        processing_metrics=metrics,
        message_id=existing_message_id,
        normalized_message=normalized_message,
        error=IngestionError(
            code=IngestionErrorCode.DUPLICATE_MESSAGE,
            message="Message already processed" if not in_flight else "Message in flight",
            stage=stage,
            retryable=False,
            details=details,
        ),
    )
