"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e agregadas depois
pelo backend de logs (BigQuery, CloudWatch Insights, etc).

Métricas suportadas:
- Latência por estágio do pipeline
- Desfecho por mensagem (success/duplicate/failed)
- Confiança da resolução de identidade
- Duplicatas detectadas por sinal
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_stage_latency(
    stage: str,
    latency_ms: float,
    provider_type: str | None = None,
) -> None:
    """Registra latência de um estágio.

    Args:
        stage: Estágio do pipeline (ex: "persistence")
        latency_ms: Latência em milissegundos
        provider_type: Provedor da mensagem, quando conhecido
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": "ingestion",
            "operation": stage,
            "latency_ms": round(latency_ms, 2),
            "provider_type": provider_type,
        },
    )


def record_ingestion_outcome(
    status: str,
    provider_type: str,
    duration_ms: float,
    error_code: str | None = None,
) -> None:
    """Registra o desfecho terminal de uma mensagem."""
    logger.info(
        "metric_ingestion_outcome",
        extra={
            "metric_type": "counter",
            "component": "ingestion",
            "status": status,
            "provider_type": provider_type,
            "duration_ms": round(duration_ms, 2),
            "error_code": error_code,
        },
    )


def record_identity_confidence(
    confidence: float,
    is_new_customer: bool,
) -> None:
    """Registra confiança da resolução de identidade (0.0-1.0)."""
    logger.info(
        "metric_confidence",
        extra={
            "metric_type": "confidence",
            "component": "identity_resolver",
            "operation": "resolve_identity",
            "confidence": round(confidence, 3),
            "is_new_customer": is_new_customer,
        },
    )


def record_duplicate_detected(duplicate_type: str, confidence: float) -> None:
    logger.info(
        "metric_duplicate",
        extra={
            "metric_type": "counter",
            "component": "deduplicator",
            "duplicate_type": duplicate_type,
            "confidence": round(confidence, 3),
        },
    )
