"""Observabilidade — logs estruturados, correlação, métricas.

Re-exporta funções de correlation_id e métricas para uso em toda a aplicação.

Uso:
    from app.observability import correlation_scope, get_correlation_id
    from app.observability import record_stage_latency, record_ingestion_outcome
"""

from app.observability.correlation import (
    correlation_scope,
    get_correlation_id,
    message_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_duplicate_detected,
    record_identity_confidence,
    record_ingestion_outcome,
    record_stage_latency,
)
from app.observability.redaction import contact_digest, mask_contact_value, mask_key

__all__ = [
    "contact_digest",
    "correlation_scope",
    "get_correlation_id",
    "mask_contact_value",
    "mask_key",
    "message_correlation_id",
    "record_duplicate_detected",
    "record_identity_confidence",
    "record_ingestion_outcome",
    "record_stage_latency",
    "reset_correlation_id",
    "set_correlation_id",
]
