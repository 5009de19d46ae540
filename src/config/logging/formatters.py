"""Formatters de logging estruturado.

Define o formatter JSON com campos obrigatórios:
- timestamp (asctime)
- level
- logger (name)
- message
- correlation_id
- service

Logs nunca devem carregar payloads brutos de webhook nem PII.
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Campos obrigatórios em todo log estruturado (ordem de saída)
REQUIRED_LOG_FIELDS = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)

# Mapeamento de nomes de campos para formato padrão
FIELD_RENAME_MAP = {
    "asctime": "timestamp",
    "levelname": "level",
    "name": "logger",
}


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Exemplo de output:
        {
            "timestamp": "2026-02-02 10:30:00,123",
            "level": "INFO",
            "logger": "app.use_cases.ingestion.pipeline",
            "message": "ingestion_completed",
            "correlation_id": "abc-123",
            "service": "conecta_inbox",
            "status": "success"
        }
    """
    format_string = " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS)

    return JsonFormatter(
        format_string,
        rename_fields=FIELD_RENAME_MAP,
        json_ensure_ascii=False,
    )
